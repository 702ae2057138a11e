"""
Reassignment plans, requests and their reported outcome.

Plans are built per request, submitted once and then dropped; nothing here
is persisted.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from logadmin.admin.types import TopicPartition

# Partition -> (source brokers, target brokers)
BrokerPlan = Dict[TopicPartition, Tuple[List[int], List[int]]]

# Partition -> (source folders, target folders)
PathPlan = Dict[TopicPartition, Tuple[Set[str], Set[str]]]


@dataclass(frozen=True)
class Assignment:
    """
    Before/after placement of one partition.

    Attributes:
        broker_source: Brokers hosting the partition before the move,
            in preference order
        broker_sink: Brokers that should host it afterwards, in
            preference order
    """
    broker_source: Tuple[int, ...]
    broker_sink: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "broker_source", tuple(self.broker_source))
        object.__setattr__(self, "broker_sink", tuple(self.broker_sink))

    def replicas_to_add(self) -> List[int]:
        """Brokers gaining a replica."""
        return [b for b in self.broker_sink if b not in self.broker_source]

    def replicas_to_remove(self) -> List[int]:
        """Brokers losing their replica."""
        return [b for b in self.broker_source if b not in self.broker_sink]

    def to_dict(self) -> dict:
        """Convert to dictionary for reporting."""
        return {
            "broker_source": list(self.broker_source),
            "broker_sink": list(self.broker_sink),
        }


@dataclass
class MigrationRequest:
    """
    What to move, as supplied by the caller.

    Attributes:
        from_brokers: Brokers to move replicas away from
        topics: Topics whose partitions are considered
        to_brokers: Brokers to move replicas onto; empty means every live
            broker outside from_brokers
        partitions: Partition indexes to restrict to; empty means all
        verify: Compute the assignment without submitting anything
    """
    from_brokers: FrozenSet[int]
    topics: FrozenSet[str]
    to_brokers: List[int] = field(default_factory=list)
    partitions: FrozenSet[int] = frozenset()
    verify: bool = False

    def __post_init__(self):
        self.from_brokers = frozenset(self.from_brokers)
        self.topics = frozenset(self.topics)
        self.partitions = frozenset(self.partitions)
        self.to_brokers = list(self.to_brokers)

        if not self.from_brokers:
            raise ValueError("from_brokers must not be empty")
        if not self.topics:
            raise ValueError("topics must not be empty")

    def selects(self, tp: TopicPartition) -> bool:
        """Check whether the partition falls under this request."""
        if tp.topic not in self.topics:
            return False
        return not self.partitions or tp.partition in self.partitions

    def explicit(self, tp: TopicPartition) -> bool:
        """Check whether the partition was named explicitly."""
        return bool(self.partitions) and self.selects(tp)


def sorted_plan(plan: Dict) -> List[Tuple[TopicPartition, tuple]]:
    """Plan entries in deterministic submission order."""
    return [(tp, plan[tp]) for tp in sorted(plan)]


def plan_topics(plan: Dict) -> Set[str]:
    """Topics referenced by a plan."""
    return {tp.topic for tp in plan}


def first_or_none(values) -> Optional[object]:
    """Smallest element of a collection, or None when it is empty."""
    values = sorted(values)
    return values[0] if values else None
