"""
Broker load cost model.

Raw per-broker costs from metric snapshots, and normalizers making them
comparable across brokers.
"""

from logadmin.cost.function import (
    BrokerInputCost,
    BrokerOutputCost,
    HasBrokerCost,
    ReplicaCountCost,
    sum_counts,
)
from logadmin.cost.normalizer import (
    MinMaxNormalizer,
    Normalizer,
    ProportionNormalizer,
    TScoreNormalizer,
    get_normalizer,
)
from logadmin.cost.score import CostScore

__all__ = [
    # Cost functions
    "HasBrokerCost",
    "BrokerInputCost",
    "BrokerOutputCost",
    "ReplicaCountCost",
    "sum_counts",
    # Normalizers
    "Normalizer",
    "TScoreNormalizer",
    "MinMaxNormalizer",
    "ProportionNormalizer",
    "get_normalizer",
    # Scores
    "CostScore",
]
