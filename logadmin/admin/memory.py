"""
In-process simulated cluster implementing the admin facade.

Reassignments are asynchronous the way a real cluster's are: a submission is
accepted immediately and only becomes visible through later ``replicas()``
polls. While a move is in flight the snapshot carries ``ADDING`` replicas on
the new brokers and ``REMOVING`` replicas on the old ones; after a
configurable number of polls the move converges and the stale replicas are
pruned.
"""

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from logadmin.admin.base import Admin
from logadmin.admin.types import Replica, ReplicaState, TopicPartition
from logadmin.errors import ConflictError, TransportError
from logadmin.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Placement:
    """Replica location inside the simulated cluster."""
    broker: int
    path: str


@dataclass
class _BrokerMove:
    """In-flight partition reassignment."""
    target: List[_Placement]
    polls_left: int


@dataclass
class _PathMove:
    """In-flight log directory move."""
    path: str
    polls_left: int


class InMemoryAdmin(Admin):
    """
    Simulated cluster for tests and dry runs.

    Moves progress by one step on every ``replicas()`` call and complete
    after ``convergence_polls`` calls.
    """

    def __init__(
        self,
        brokers: Optional[Dict[int, Iterable[str]]] = None,
        convergence_polls: int = 2,
    ):
        """
        Initialize simulated cluster.

        Args:
            brokers: Broker id -> storage folders
            convergence_polls: Polls until a submitted move completes
        """
        if convergence_polls < 1:
            raise ValueError(f"Invalid convergence_polls: {convergence_polls}")

        self.convergence_polls = convergence_polls

        self._folders: Dict[int, List[str]] = {}
        self._placements: Dict[TopicPartition, List[_Placement]] = {}
        self._leaders: Dict[TopicPartition, int] = {}
        self._broker_moves: Dict[TopicPartition, _BrokerMove] = {}
        self._path_moves: Dict[Tuple[TopicPartition, int], _PathMove] = {}
        self._submissions: List[Tuple[str, TopicPartition, object]] = []
        self._closed = False
        self._lock = threading.RLock()

        for broker_id, folders in (brokers or {}).items():
            self.add_broker(broker_id, folders)

        logger.info(
            "InMemoryAdmin initialized",
            brokers=sorted(self._folders),
            convergence_polls=convergence_polls,
        )

    @classmethod
    def of(
        cls,
        broker_count: int = 3,
        folders_per_broker: int = 2,
        convergence_polls: int = 2,
    ) -> "InMemoryAdmin":
        """Create a cluster with brokers 1..broker_count."""
        brokers = {
            broker_id: [f"/tmp/log-{broker_id}-{i}" for i in range(folders_per_broker)]
            for broker_id in range(1, broker_count + 1)
        }
        return cls(brokers, convergence_polls=convergence_polls)

    # Setup

    def add_broker(self, broker_id: int, folders: Iterable[str]) -> None:
        """
        Add a live broker.

        Args:
            broker_id: Broker id
            folders: Storage folders on the broker
        """
        folders = sorted(set(folders))
        if not folders:
            raise ValueError(f"Broker {broker_id} needs at least one folder")

        with self._lock:
            self._folders[broker_id] = folders

    def create_topic(self, name: str, partitions: int = 1, replicas: int = 1) -> None:
        """
        Create a topic with round-robin replica placement.

        Args:
            name: Topic name
            partitions: Number of partitions
            replicas: Replication factor
        """
        with self._lock:
            self._check_open()

            if name in self.topic_names():
                raise ValueError(f"Topic already exists: {name}")

            brokers = sorted(self._folders)
            if replicas < 1 or replicas > len(brokers):
                raise ValueError(
                    f"Invalid replication factor {replicas} for {len(brokers)} brokers"
                )

            for partition in range(partitions):
                tp = TopicPartition(name, partition)
                placements = []
                for i in range(replicas):
                    broker = brokers[(partition + i) % len(brokers)]
                    folders = self._folders[broker]
                    placements.append(_Placement(broker, folders[partition % len(folders)]))
                self._placements[tp] = placements
                self._leaders[tp] = placements[0].broker

            logger.info(
                "Created topic",
                topic=name,
                partitions=partitions,
                replicas=replicas,
            )

    # Facade

    def topic_names(self) -> Set[str]:
        with self._lock:
            self._check_open()
            return {tp.topic for tp in self._placements}

    def broker_ids(self) -> Set[int]:
        with self._lock:
            self._check_open()
            return set(self._folders)

    def broker_folders(self, broker_ids: Iterable[int]) -> Dict[int, Set[str]]:
        with self._lock:
            self._check_open()
            return {
                broker_id: set(self._folders[broker_id])
                for broker_id in broker_ids
                if broker_id in self._folders
            }

    def replicas(self, topics: Iterable[str]) -> Dict[TopicPartition, List[Replica]]:
        with self._lock:
            self._check_open()
            self._advance()

            topics = set(topics)
            return {
                tp: self._snapshot(tp)
                for tp in sorted(self._placements)
                if tp.topic in topics
            }

    def migrate_brokers(self, tp: TopicPartition, brokers: List[int]) -> None:
        with self._lock:
            self._check_open()
            current = self._current(tp)

            if tp in self._broker_moves or any(key[0] == tp for key in self._path_moves):
                raise ConflictError(tp)

            if not brokers or len(set(brokers)) != len(brokers):
                raise TransportError(f"Invalid replica assignment {brokers} for {tp}", topic_partition=tp)

            for broker in brokers:
                if broker not in self._folders:
                    raise TransportError(
                        f"Broker {broker} is not available",
                        topic_partition=tp,
                        broker_id=broker,
                    )

            existing = {p.broker: p for p in current}
            target = [
                existing.get(broker) or _Placement(broker, self._least_used_folder(broker))
                for broker in brokers
            ]

            self._broker_moves[tp] = _BrokerMove(target=target, polls_left=self.convergence_polls)
            self._submissions.append(("brokers", tp, list(brokers)))

            logger.info(
                "Accepted partition reassignment",
                topic=tp.topic,
                partition=tp.partition,
                brokers=brokers,
            )

    def migrate_path(self, tp: TopicPartition, broker: int, path: str) -> None:
        with self._lock:
            self._check_open()
            current = self._current(tp)

            if tp in self._broker_moves or (tp, broker) in self._path_moves:
                raise ConflictError(tp)

            if not any(p.broker == broker for p in current):
                raise TransportError(
                    f"Broker {broker} hosts no replica of {tp}",
                    topic_partition=tp,
                    broker_id=broker,
                )

            if path not in self._folders.get(broker, []):
                raise TransportError(
                    f"Folder {path} is not configured on broker {broker}",
                    topic_partition=tp,
                    broker_id=broker,
                )

            self._path_moves[(tp, broker)] = _PathMove(path=path, polls_left=self.convergence_polls)
            self._submissions.append(("path", tp, (broker, path)))

            logger.info(
                "Accepted log directory move",
                topic=tp.topic,
                partition=tp.partition,
                broker_id=broker,
                path=path,
            )

    def close(self) -> None:
        with self._lock:
            self._closed = True

    # Introspection for tests and dry runs

    @property
    def submissions(self) -> List[Tuple[str, TopicPartition, object]]:
        """Every accepted request as (kind, partition, argument), in order."""
        with self._lock:
            return list(self._submissions)

    def in_flight(self) -> Set[TopicPartition]:
        """Partitions with an unfinished move."""
        with self._lock:
            return set(self._broker_moves) | {tp for tp, _ in self._path_moves}

    # Internals

    def _check_open(self) -> None:
        if self._closed:
            raise TransportError("Admin connection is closed")

    def _current(self, tp: TopicPartition) -> List[_Placement]:
        if tp not in self._placements:
            raise TransportError(f"Unknown topic partition: {tp}", topic_partition=tp)
        return self._placements[tp]

    def _least_used_folder(self, broker: int) -> str:
        usage = {folder: 0 for folder in self._folders[broker]}
        for placements in self._placements.values():
            for p in placements:
                if p.broker == broker and p.path in usage:
                    usage[p.path] += 1
        return min(sorted(usage), key=lambda folder: usage[folder])

    def _advance(self) -> None:
        """Move every in-flight request one poll closer to completion."""
        for tp in sorted(self._broker_moves):
            move = self._broker_moves[tp]
            move.polls_left -= 1
            if move.polls_left <= 0:
                self._placements[tp] = move.target
                self._leaders[tp] = move.target[0].broker
                del self._broker_moves[tp]

                logger.debug(
                    "Partition reassignment completed",
                    topic=tp.topic,
                    partition=tp.partition,
                    brokers=[p.broker for p in move.target],
                )

        for key in sorted(self._path_moves):
            move = self._path_moves[key]
            move.polls_left -= 1
            if move.polls_left <= 0:
                tp, broker = key
                for placement in self._placements[tp]:
                    if placement.broker == broker:
                        placement.path = move.path
                del self._path_moves[key]

                logger.debug(
                    "Log directory move completed",
                    topic=tp.topic,
                    partition=tp.partition,
                    broker_id=broker,
                    path=move.path,
                )

    def _snapshot(self, tp: TopicPartition) -> List[Replica]:
        leader = self._leaders[tp]
        current = self._placements[tp]
        replicas: List[Replica] = []

        move = self._broker_moves.get(tp)
        if move is None:
            entries = [(p, ReplicaState.STABLE) for p in current]
        else:
            current_brokers = {p.broker for p in current}
            target_brokers = {p.broker for p in move.target}
            entries = [
                (p, ReplicaState.STABLE if p.broker in current_brokers else ReplicaState.ADDING)
                for p in move.target
            ]
            entries += [(p, ReplicaState.REMOVING) for p in current if p.broker not in target_brokers]

        for placement, state in entries:
            lag = move.polls_left if state == ReplicaState.ADDING else 0
            replicas.append(
                Replica(
                    topic_partition=tp,
                    broker=placement.broker,
                    path=placement.path,
                    leader=placement.broker == leader,
                    state=state,
                    lag=lag,
                )
            )

            path_move = self._path_moves.get((tp, placement.broker))
            if path_move is not None:
                replicas.append(
                    Replica(
                        topic_partition=tp,
                        broker=placement.broker,
                        path=path_move.path,
                        leader=False,
                        state=ReplicaState.ADDING,
                        lag=path_move.polls_left,
                    )
                )

        return replicas
