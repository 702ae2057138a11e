"""
Value types shared by the admin facade and the migrator.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, order=True)
class TopicPartition:
    """
    Represents a topic-partition pair.

    Ordered by topic name, then partition index.

    Attributes:
        topic: Topic name
        partition: Partition number
    """
    topic: str
    partition: int

    def __str__(self) -> str:
        return f"{self.topic}-{self.partition}"

    @classmethod
    def of(cls, value: str) -> "TopicPartition":
        """Parse the ``topic-partition`` form."""
        topic, _, partition = value.rpartition("-")
        if not topic or not partition.isdigit():
            raise ValueError(f"Invalid topic partition: {value}")
        return cls(topic, int(partition))


class ReplicaState(str, Enum):
    """Placement state of a replica."""

    STABLE = "stable"        # Part of the settled assignment
    ADDING = "adding"        # Being created by an in-flight move
    REMOVING = "removing"    # Scheduled for deletion by an in-flight move


@dataclass(frozen=True)
class Replica:
    """
    Snapshot of one replica as reported by the cluster.

    Attributes:
        topic_partition: Partition the replica belongs to
        broker: Broker hosting the replica
        path: Storage folder on that broker
        leader: Whether the replica currently leads the partition
        state: Placement state
        lag: Offsets behind the leader
        size: Bytes on disk
    """
    topic_partition: TopicPartition
    broker: int
    path: str
    leader: bool = False
    state: ReplicaState = ReplicaState.STABLE
    lag: int = 0
    size: int = 0

    @property
    def is_current(self) -> bool:
        """True once the replica is part of the settled assignment."""
        return self.state == ReplicaState.STABLE

    @property
    def topic(self) -> str:
        return self.topic_partition.topic

    @property
    def partition(self) -> int:
        return self.topic_partition.partition
