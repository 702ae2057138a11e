"""
Cluster admin facade.

Exposes topology, replica placement and reassignment submission.
"""

from logadmin.admin.base import Admin
from logadmin.admin.cluster_info import ClusterInfo
from logadmin.admin.memory import InMemoryAdmin
from logadmin.admin.types import Replica, ReplicaState, TopicPartition

__all__ = [
    "Admin",
    "ClusterInfo",
    "InMemoryAdmin",
    "Replica",
    "ReplicaState",
    "TopicPartition",
]
