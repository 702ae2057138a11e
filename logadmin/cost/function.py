"""
Cost functions turning metric snapshots into raw broker costs.

A cost function is anything with ``broker_cost(cluster_info, cluster_bean)
-> CostScore`` and ``fetcher() -> Optional[Fetcher]``. Cost functions are
pure: they only read their inputs, so independent snapshots can be scored
concurrently.
"""

from typing import Dict, Optional, Protocol, runtime_checkable

from logadmin.admin.cluster_info import ClusterInfo
from logadmin.cost.score import CostScore
from logadmin.metrics.cluster_bean import ClusterBean
from logadmin.metrics.fetcher import Fetcher
from logadmin.metrics.kafka import BrokerTopic, BrokerTopicMetricsResult


@runtime_checkable
class HasBrokerCost(Protocol):
    """Computes one raw cost per broker."""

    def broker_cost(self, cluster_info: ClusterInfo, cluster_bean: ClusterBean) -> CostScore:
        ...

    def fetcher(self) -> Optional[Fetcher]:
        ...


def sum_counts(cluster_bean: ClusterBean, metric: BrokerTopic) -> Dict[int, float]:
    """
    Sum the ``Count`` of every sample of one meter, per broker.

    Brokers without a single sample of the meter are left out, so "no data"
    stays distinguishable from "zero load".
    """
    totals: Dict[int, float] = {}
    for broker_id in cluster_bean.broker_ids():
        samples = [
            r for r in cluster_bean.results(broker_id, BrokerTopicMetricsResult)
            if r.metric_name == metric.metric_name()
        ]
        if samples:
            totals[broker_id] = float(sum(r.count for r in samples))
    return totals


class BrokerInputCost:
    """Network pressure from bytes produced into each broker."""

    def broker_cost(self, cluster_info: ClusterInfo, cluster_bean: ClusterBean) -> CostScore:
        return CostScore(sum_counts(cluster_bean, BrokerTopic.BytesInPerSec))

    def fetcher(self) -> Optional[Fetcher]:
        return BrokerTopic.BytesInPerSec.fetcher()


class BrokerOutputCost:
    """Network pressure from bytes fetched out of each broker."""

    def broker_cost(self, cluster_info: ClusterInfo, cluster_bean: ClusterBean) -> CostScore:
        return CostScore(sum_counts(cluster_bean, BrokerTopic.BytesOutPerSec))

    def fetcher(self) -> Optional[Fetcher]:
        return BrokerTopic.BytesOutPerSec.fetcher()


class ReplicaCountCost:
    """Number of replicas each live broker hosts; needs no metrics."""

    def broker_cost(self, cluster_info: ClusterInfo, cluster_bean: ClusterBean) -> CostScore:
        return CostScore(
            {
                broker_id: float(len(cluster_info.replicas_on(broker_id)))
                for broker_id in cluster_info.broker_ids
            }
        )

    def fetcher(self) -> Optional[Fetcher]:
        return None
