"""
Replica migration on a live cluster.

Submits partition reassignments and log directory moves through the admin
facade and reports the before/after placement of every partition. Nothing
here waits for a move to finish: the cluster converges on its own and the
caller decides whether and how long to poll (see ``ReassignmentMonitor``).
Submission errors are never retried, since resubmitting a partition that
already has a move in flight is unsafe.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from logadmin.admin.base import Admin
from logadmin.admin.types import Replica, ReplicaState, TopicPartition
from logadmin.errors import MigrationError, PlanValidationError, VerificationError
from logadmin.migration.plan import (
    Assignment,
    BrokerPlan,
    MigrationRequest,
    PathPlan,
    first_or_none,
    plan_topics,
    sorted_plan,
)
from logadmin.utils.logging import get_logger

logger = get_logger(__name__)


def hosting_brokers(replicas: Iterable[Replica]) -> List[int]:
    """
    Brokers currently hosting a partition, in preference order.

    Replicas still being created are ignored, and a broker with a log
    directory move in flight is listed once.
    """
    brokers: List[int] = []
    for replica in replicas:
        if replica.state == ReplicaState.ADDING:
            continue
        if replica.broker not in brokers:
            brokers.append(replica.broker)
    return brokers


def replace_brokers(current: List[int], source: List[int], target: List[int]) -> List[int]:
    """
    Build the replica list after moving ``source`` brokers to ``target``.

    Brokers outside ``source`` keep their position. Each source broker is
    replaced in place by the next target broker so the preferred leader slot
    survives the move; leftover targets are appended. Duplicates are dropped.
    """
    remaining = list(target)
    result: List[int] = []

    for broker in current:
        if broker in source:
            if remaining:
                result.append(remaining.pop(0))
        else:
            result.append(broker)
    result.extend(remaining)

    deduped: List[int] = []
    for broker in result:
        if broker not in deduped:
            deduped.append(broker)
    return deduped


def raise_failures(failures: Dict[TopicPartition, Exception], submitted: Dict) -> None:
    """
    Surface per-entry failures once every entry has been processed.

    A single failure is re-raised as is only when nothing was submitted.
    Otherwise a MigrationError reports both the failures and the submitted
    entries, chained to the first failure.
    """
    if not failures:
        return

    first = failures[min(failures)]
    if len(failures) == 1 and not submitted:
        raise first
    raise MigrationError(failures, submitted) from first


class ReplicaMigrator:
    """
    Moves replicas between brokers and between folders of one broker.

    Every operation reads placement fresh from the admin facade, validates
    each plan entry on its own and submits one request per valid entry.
    """

    def __init__(self, admin: Admin):
        """
        Initialize migrator.

        Args:
            admin: Cluster admin facade
        """
        self.admin = admin

    def broker_migrator(self, plan: BrokerPlan) -> Dict[TopicPartition, List[int]]:
        """
        Move replicas of each planned partition to other brokers.

        Args:
            plan: Partition -> (source brokers, target brokers)

        Returns:
            Partition -> submitted replica list

        Raises:
            PlanValidationError: If the only failing entry does not match
                live placement and nothing was submitted
            MigrationError: If several entries failed, or any failed while
                others were submitted
        """
        placement = self.admin.replicas(plan_topics(plan))
        submitted, failures = self._submit_brokers(plan, placement)
        raise_failures(failures, submitted)
        return submitted

    def path_migrator(self, plan: PathPlan, broker: int) -> Dict[TopicPartition, str]:
        """
        Move replicas on one broker to other storage folders.

        Broker assignment is left untouched.

        Args:
            plan: Partition -> (source folders, target folders)
            broker: Broker whose replicas move

        Returns:
            Partition -> submitted target folder
        """
        placement = self.admin.replicas(plan_topics(plan))
        folders = self.admin.broker_folders([broker]).get(broker, set())

        submitted: Dict[TopicPartition, str] = {}
        failures: Dict[TopicPartition, Exception] = {}

        for tp, (source_paths, target_paths) in sorted_plan(plan):
            try:
                path = self._check_path_entry(
                    tp, placement.get(tp), broker, folders, set(source_paths), set(target_paths)
                )
            except PlanValidationError as e:
                logger.warning(
                    "Rejected log directory move",
                    topic=tp.topic,
                    partition=tp.partition,
                    broker_id=broker,
                    reason=e.reason,
                )
                failures[tp] = e
                continue

            try:
                self.admin.migrate_path(tp, broker, path)
            except Exception as e:
                logger.error(
                    "Log directory move submission failed",
                    topic=tp.topic,
                    partition=tp.partition,
                    broker_id=broker,
                    error=str(e),
                )
                failures[tp] = e
                continue

            submitted[tp] = path

            logger.info(
                "Submitted log directory move",
                topic=tp.topic,
                partition=tp.partition,
                broker_id=broker,
                path=path,
            )

        raise_failures(failures, submitted)
        return submitted

    def execute(self, request: MigrationRequest) -> Dict[TopicPartition, Assignment]:
        """
        Plan and submit the moves described by a request.

        With ``request.verify`` set the assignments are computed and
        returned without submitting anything.

        Args:
            request: Source brokers, target brokers and partition selector

        Returns:
            Partition -> before/after placement of every accepted entry

        Raises:
            PlanValidationError: If a topic does not exist, or the only
                failing entry was rejected and nothing was submitted
            MigrationError: If entries failed after others were submitted;
                ``submitted`` holds their Assignments
        """
        live = self.admin.broker_ids()
        to_brokers = request.to_brokers or sorted(live - request.from_brokers)
        placement = self.admin.replicas(request.topics)

        missing = sorted(request.topics - {tp.topic for tp in placement})
        if missing:
            logger.warning("Rejected request for unknown topics", topics=missing)
            raise PlanValidationError(None, f"topics {missing} do not exist")

        plan: BrokerPlan = {}
        assignments: Dict[TopicPartition, Assignment] = {}
        failures: Dict[TopicPartition, Exception] = {}

        for tp in sorted(placement):
            if not request.selects(tp):
                continue

            try:
                entry = self._plan_entry(tp, placement[tp], request, to_brokers, live)
            except PlanValidationError as e:
                logger.warning(
                    "Rejected partition",
                    topic=tp.topic,
                    partition=tp.partition,
                    reason=e.reason,
                )
                failures[tp] = e
                continue

            if entry is None:
                continue

            current, source, target = entry
            plan[tp] = (source, target)
            assignments[tp] = Assignment(
                broker_source=current,
                broker_sink=replace_brokers(current, source, target),
            )

        for partition in sorted(request.partitions):
            for topic in sorted(request.topics):
                tp = TopicPartition(topic, partition)
                if tp not in placement:
                    failures[tp] = PlanValidationError(tp, "partition does not exist")

        if request.verify:
            logger.info(
                "Computed assignment without submitting",
                partitions=len(assignments),
            )
            raise_failures(failures, {})
            return assignments

        submitted, submit_failures = self._submit_brokers(plan, placement)
        failures.update(submit_failures)
        assignments = {tp: assignments[tp] for tp in submitted}

        raise_failures(failures, assignments)
        return assignments

    def verify(self, assignments: Dict[TopicPartition, Assignment]) -> Dict[TopicPartition, bool]:
        """
        Check whether recorded assignments have been reached.

        Submits nothing.

        Args:
            assignments: Partition -> expected placement

        Returns:
            Partition -> True if all replicas are stable on broker_sink
        """
        placement = self.admin.replicas(plan_topics(assignments))
        result = {}

        for tp, assignment in sorted_plan(assignments):
            replicas = placement.get(tp, [])
            result[tp] = (
                all(r.state == ReplicaState.STABLE for r in replicas)
                and tuple(r.broker for r in replicas) == assignment.broker_sink
            )

        logger.info(
            "Verified assignment",
            partitions=len(result),
            converged=sum(1 for done in result.values() if done),
        )

        return result

    def verify_or_raise(self, assignments: Dict[TopicPartition, Assignment]) -> None:
        """
        Like verify, but raise for partitions that have not converged.

        Raises:
            VerificationError: Listing the pending partitions
        """
        pending = [tp for tp, done in self.verify(assignments).items() if not done]
        if pending:
            raise VerificationError(pending)

    # Internals

    def _submit_brokers(
        self,
        plan: BrokerPlan,
        placement: Dict[TopicPartition, List[Replica]],
    ) -> Tuple[Dict[TopicPartition, List[int]], Dict[TopicPartition, Exception]]:
        """Validate and submit each broker plan entry independently."""
        live = self.admin.broker_ids()
        submitted: Dict[TopicPartition, List[int]] = {}
        failures: Dict[TopicPartition, Exception] = {}

        for tp, (source, target) in sorted_plan(plan):
            try:
                brokers = self._check_broker_entry(tp, placement.get(tp), live, list(source), list(target))
            except PlanValidationError as e:
                logger.warning(
                    "Rejected partition reassignment",
                    topic=tp.topic,
                    partition=tp.partition,
                    reason=e.reason,
                )
                failures[tp] = e
                continue

            try:
                self.admin.migrate_brokers(tp, brokers)
            except Exception as e:
                logger.error(
                    "Partition reassignment submission failed",
                    topic=tp.topic,
                    partition=tp.partition,
                    brokers=brokers,
                    error=str(e),
                )
                failures[tp] = e
                continue

            submitted[tp] = brokers

            logger.info(
                "Submitted partition reassignment",
                topic=tp.topic,
                partition=tp.partition,
                source=list(source),
                target=list(target),
                brokers=brokers,
            )

        return submitted, failures

    def _check_broker_entry(
        self,
        tp: TopicPartition,
        replicas: Optional[List[Replica]],
        live: set,
        source: List[int],
        target: List[int],
    ) -> List[int]:
        """Return the replica list to submit for one entry, or raise."""
        if not replicas:
            raise PlanValidationError(tp, "partition does not exist")

        if not source:
            raise PlanValidationError(tp, "no source brokers given")

        if set(source) == set(target):
            raise PlanValidationError(tp, f"source equals target {sorted(source)}")

        current = hosting_brokers(replicas)
        missing = sorted(set(source) - set(current))
        if missing:
            raise PlanValidationError(
                tp, f"brokers {missing} host no replica (current {current})"
            )

        dead = sorted(set(target) - live)
        if dead:
            raise PlanValidationError(tp, f"target brokers {dead} are not live")

        brokers = replace_brokers(current, source, target)
        if not brokers:
            raise PlanValidationError(tp, "move would leave no replicas")
        if brokers == current:
            raise PlanValidationError(tp, "move does not change placement")

        return brokers

    def _check_path_entry(
        self,
        tp: TopicPartition,
        replicas: Optional[List[Replica]],
        broker: int,
        folders: set,
        source_paths: set,
        target_paths: set,
    ) -> str:
        """Return the folder to move one replica to, or raise."""
        if not replicas:
            raise PlanValidationError(tp, "partition does not exist")

        replica = next(
            (r for r in replicas if r.broker == broker and r.state != ReplicaState.ADDING),
            None,
        )
        if replica is None:
            raise PlanValidationError(tp, f"broker {broker} hosts no replica")

        if replica.path not in source_paths:
            raise PlanValidationError(
                tp, f"replica is on {replica.path}, not in {sorted(source_paths)}"
            )

        unknown = sorted(target_paths - folders)
        if unknown:
            raise PlanValidationError(
                tp, f"folders {unknown} are not configured on broker {broker}"
            )

        path = first_or_none(target_paths - {replica.path})
        if path is None:
            raise PlanValidationError(tp, f"replica is already on {replica.path}")

        return path

    def _plan_entry(
        self,
        tp: TopicPartition,
        replicas: List[Replica],
        request: MigrationRequest,
        to_brokers: List[int],
        live: set,
    ) -> Optional[Tuple[List[int], List[int], List[int]]]:
        """
        Derive (current, source, target) for one selected partition.

        Returns None when a partition selected by topic alone has no replica
        on the source brokers.
        """
        current = hosting_brokers(replicas)
        source = [b for b in current if b in request.from_brokers]

        if request.explicit(tp):
            missing = sorted(request.from_brokers - set(current))
            if missing:
                raise PlanValidationError(
                    tp, f"brokers {missing} host no replica (current {current})"
                )
        elif not source:
            return None

        kept = [b for b in current if b not in source]
        candidates = [b for b in to_brokers if b not in kept and b not in source]
        if len(candidates) < len(source):
            raise PlanValidationError(
                tp,
                f"need {len(source)} target brokers outside {current}, got {candidates}",
            )

        target = candidates[:len(source)]
        dead = sorted(set(target) - live)
        if dead:
            raise PlanValidationError(tp, f"target brokers {dead} are not live")

        return current, source, target


def broker_migrator(plan: BrokerPlan, admin: Admin) -> Dict[TopicPartition, List[int]]:
    """Submit one partition reassignment per plan entry, in sorted order."""
    return ReplicaMigrator(admin).broker_migrator(plan)


def path_migrator(plan: PathPlan, admin: Admin, broker: int) -> Dict[TopicPartition, str]:
    """Submit one log directory move per plan entry on a single broker."""
    return ReplicaMigrator(admin).path_migrator(plan, broker)


def execute(admin: Admin, request: MigrationRequest) -> Dict[TopicPartition, Assignment]:
    """Plan, validate and submit (or only compute, when verifying) a migration."""
    return ReplicaMigrator(admin).execute(request)


def verify(admin: Admin, assignments: Dict[TopicPartition, Assignment]) -> Dict[TopicPartition, bool]:
    """Compare live placement with recorded assignments."""
    return ReplicaMigrator(admin).verify(assignments)
