"""
Admin facade consumed by the migrator.

The facade is the only way logadmin talks to a cluster. Implementations wrap
whatever admin RPC the platform exposes; every call is synchronous from the
caller's point of view and reflects cluster state at call time.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Set

from logadmin.admin.types import Replica, TopicPartition


class Admin(ABC):
    """Abstract cluster admin facade."""

    @abstractmethod
    def replicas(self, topics: Iterable[str]) -> Dict[TopicPartition, List[Replica]]:
        """
        Get replica placement for topics.

        Args:
            topics: Topic names

        Returns:
            Partition -> replicas in assignment-preference order
            (index 0 is the preferred leader)
        """
        pass

    @abstractmethod
    def broker_ids(self) -> Set[int]:
        """Get the ids of live brokers."""
        pass

    @abstractmethod
    def broker_folders(self, broker_ids: Iterable[int]) -> Dict[int, Set[str]]:
        """
        Get configured storage folders.

        Args:
            broker_ids: Brokers to describe

        Returns:
            Broker id -> storage folders
        """
        pass

    @abstractmethod
    def migrate_brokers(self, tp: TopicPartition, brokers: List[int]) -> None:
        """
        Submit a reassignment moving a partition's replicas to a broker list.

        Returns once the cluster accepted the request, not when it completed.

        Args:
            tp: Partition to move
            brokers: Full target replica list, preferred leader first

        Raises:
            ConflictError: If a reassignment is already in flight for tp
            TransportError: If the request cannot be delivered
        """
        pass

    @abstractmethod
    def migrate_path(self, tp: TopicPartition, broker: int, path: str) -> None:
        """
        Submit a move of one replica to another folder on the same broker.

        Args:
            tp: Partition whose replica moves
            broker: Broker hosting the replica
            path: Target storage folder
        """
        pass

    @abstractmethod
    def create_topic(self, name: str, partitions: int = 1, replicas: int = 1) -> None:
        """Create a topic (setup and tests only)."""
        pass

    @abstractmethod
    def topic_names(self) -> Set[str]:
        """Get existing topic names."""
        pass

    def close(self) -> None:
        """Release the underlying connection."""
        pass

    def __enter__(self) -> "Admin":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
