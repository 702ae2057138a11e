"""
Topology snapshot handed to cost functions.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List

from logadmin.admin.base import Admin
from logadmin.admin.types import Replica, TopicPartition


@dataclass(frozen=True)
class ClusterInfo:
    """
    Live brokers and replica placement at one point in time.

    Attributes:
        broker_ids: Live broker ids
        replicas: Partition -> replicas in preference order
    """
    broker_ids: FrozenSet[int] = frozenset()
    replicas: Dict[TopicPartition, List[Replica]] = field(default_factory=dict)

    @classmethod
    def of(cls, admin: Admin, topics: Iterable[str]) -> "ClusterInfo":
        """Read a snapshot through the admin facade."""
        return cls(frozenset(admin.broker_ids()), admin.replicas(topics))

    def topics(self) -> FrozenSet[str]:
        return frozenset(tp.topic for tp in self.replicas)

    def replicas_on(self, broker_id: int) -> List[Replica]:
        """Replicas hosted by one broker, in partition order."""
        return [
            replica
            for tp in sorted(self.replicas)
            for replica in self.replicas[tp]
            if replica.broker == broker_id
        ]

    def leader_count(self, broker_id: int) -> int:
        return sum(1 for replica in self.replicas_on(broker_id) if replica.leader)


ClusterInfo.EMPTY = ClusterInfo()
