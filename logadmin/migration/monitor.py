"""
Reassignment progress monitoring.

Caller-side helpers that poll placement until submitted moves converge. The
migrator never uses these; a caller that wants synchronous behavior runs the
poll loop itself and can stop at any time without affecting the cluster.
"""

import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from logadmin.admin.base import Admin
from logadmin.admin.types import Replica, ReplicaState, TopicPartition
from logadmin.migration.plan import Assignment, plan_topics
from logadmin.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReassignmentProgress:
    """
    Observed progress of one partition move.

    Attributes:
        topic_partition: Partition being moved
        replicas: Replicas currently reported
        adding: Replicas still being created
        removing: Replicas waiting to be deleted
        max_lag: Largest lag among adding replicas
        converged: Whether placement matches the target
    """
    topic_partition: TopicPartition
    replicas: int
    adding: int
    removing: int
    max_lag: int
    converged: bool


def is_converged(replicas: List[Replica], assignment: Assignment) -> bool:
    """
    Check whether a partition reached its target brokers.

    True when the replica count equals the target count, so stale replicas
    have been pruned, and the hosting brokers equal the target set.
    """
    if len(replicas) != len(assignment.broker_sink):
        return False
    if any(r.state != ReplicaState.STABLE for r in replicas):
        return False
    return {r.broker for r in replicas} == set(assignment.broker_sink)


def is_path_converged(replicas: List[Replica], broker: int, path: str) -> bool:
    """Check whether the replica on a broker now lives only in ``path``."""
    on_broker = [r for r in replicas if r.broker == broker]
    return len(on_broker) == 1 and on_broker[0].path == path and on_broker[0].is_current


class ReassignmentMonitor:
    """
    Polls placement and reports how far submitted moves have come.
    """

    def __init__(
        self,
        admin: Admin,
        poll_interval_ms: int = 1000,
        timeout_ms: int = 300000,
    ):
        """
        Initialize reassignment monitor.

        Args:
            admin: Cluster admin facade
            poll_interval_ms: Delay between polls
            timeout_ms: Default deadline for wait_for
        """
        self.admin = admin
        self.poll_interval_ms = poll_interval_ms
        self.timeout_ms = timeout_ms

    @classmethod
    def from_config(cls, admin: Admin, config) -> "ReassignmentMonitor":
        """Create a monitor using the ``migration`` config section."""
        return cls(
            admin,
            poll_interval_ms=config.get("migration.poll_interval_ms", 1000),
            timeout_ms=config.get("migration.timeout_ms", 300000),
        )

    def progress(self, assignments: Dict[TopicPartition, Assignment]) -> List[ReassignmentProgress]:
        """
        Poll placement once.

        Args:
            assignments: Partition -> expected placement

        Returns:
            Progress per partition, in partition order
        """
        placement = self.admin.replicas(plan_topics(assignments))
        result = []

        for tp in sorted(assignments):
            replicas = placement.get(tp, [])
            adding = [r for r in replicas if r.state == ReplicaState.ADDING]
            result.append(
                ReassignmentProgress(
                    topic_partition=tp,
                    replicas=len(replicas),
                    adding=len(adding),
                    removing=sum(1 for r in replicas if r.state == ReplicaState.REMOVING),
                    max_lag=max((r.lag for r in adding), default=0),
                    converged=is_converged(replicas, assignments[tp]),
                )
            )

        return result

    def pending(self, assignments: Dict[TopicPartition, Assignment]) -> List[TopicPartition]:
        """Partitions that have not converged yet."""
        return [p.topic_partition for p in self.progress(assignments) if not p.converged]

    def wait_for(
        self,
        assignments: Dict[TopicPartition, Assignment],
        timeout_ms: Optional[int] = None,
    ) -> int:
        """
        Poll until every partition converged.

        Args:
            assignments: Partition -> expected placement
            timeout_ms: Deadline, defaults to the monitor's timeout

        Returns:
            Number of polls issued

        Raises:
            TimeoutError: If the deadline passes first
        """
        return self._wait(lambda: self.pending(assignments), timeout_ms)

    def wait_for_paths(
        self,
        broker: int,
        paths: Dict[TopicPartition, str],
        timeout_ms: Optional[int] = None,
    ) -> int:
        """
        Poll until replicas on a broker sit in their target folders.

        Args:
            broker: Broker whose replicas moved
            paths: Partition -> expected folder
            timeout_ms: Deadline, defaults to the monitor's timeout

        Returns:
            Number of polls issued
        """
        def pending() -> List[TopicPartition]:
            placement = self.admin.replicas(plan_topics(paths))
            return [
                tp for tp in sorted(paths)
                if not is_path_converged(placement.get(tp, []), broker, paths[tp])
            ]

        return self._wait(pending, timeout_ms)

    def get_summary(self, assignments: Dict[TopicPartition, Assignment]) -> Dict:
        """
        Get summary of all monitored moves.

        Returns:
            Summary dict
        """
        progress = self.progress(assignments)
        return {
            "total_count": len(progress),
            "converged_count": sum(1 for p in progress if p.converged),
            "pending": [
                {
                    "topic": p.topic_partition.topic,
                    "partition": p.topic_partition.partition,
                    "adding": p.adding,
                    "removing": p.removing,
                    "max_lag": p.max_lag,
                }
                for p in progress
                if not p.converged
            ],
        }

    def _wait(self, pending_fn, timeout_ms: Optional[int]) -> int:
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        deadline = time.monotonic() + timeout_ms / 1000
        polls = 0

        while True:
            pending = pending_fn()
            polls += 1

            if not pending:
                logger.info("Reassignment converged", polls=polls)
                return polls

            if time.monotonic() >= deadline:
                logger.warning(
                    "Reassignment did not converge in time",
                    pending=[str(tp) for tp in pending],
                    timeout_ms=timeout_ms,
                )
                raise TimeoutError(
                    f"{len(pending)} partitions not converged after {timeout_ms}ms"
                )

            logger.debug("Waiting for reassignment", pending=len(pending), polls=polls)
            time.sleep(self.poll_interval_ms / 1000)
