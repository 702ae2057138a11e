"""Tests for replica migration."""

import pytest

from logadmin.admin import InMemoryAdmin, TopicPartition
from logadmin.errors import (
    ConflictError,
    MigrationError,
    PlanValidationError,
    TransportError,
    VerificationError,
)
from logadmin.migration import (
    Assignment,
    MigrationRequest,
    ReassignmentMonitor,
    ReplicaMigrator,
    broker_migrator,
    execute,
    path_migrator,
    verify,
)
from logadmin.migration.migrator import hosting_brokers, replace_brokers


class FlakyAdmin(InMemoryAdmin):
    """Simulated cluster failing submissions for chosen partitions."""

    def __init__(self, failing, **kwargs):
        super().__init__(**kwargs)
        self.failing = failing
        self.calls = []

    def migrate_brokers(self, tp, brokers):
        self.calls.append(tp)
        if tp in self.failing:
            raise self.failing[tp]
        super().migrate_brokers(tp, brokers)


def wait(admin, assignments):
    """Poll until the simulated cluster converged."""
    return ReassignmentMonitor(admin, poll_interval_ms=0, timeout_ms=1000).wait_for(assignments)


class TestReplaceBrokers:
    """Test replica list computation."""

    def test_replaces_in_place(self):
        """Test the target takes the source's slot."""
        assert replace_brokers([1, 2], [1], [3]) == [3, 2]
        assert replace_brokers([1, 2, 3], [2], [4]) == [1, 4, 3]

    def test_extra_targets_appended(self):
        """Test surplus targets go to the end."""
        assert replace_brokers([1, 2], [1], [3, 4]) == [3, 2, 4]

    def test_fewer_targets_shrink(self):
        """Test sources without a target are dropped."""
        assert replace_brokers([1, 2], [1, 2], [3]) == [3]

    def test_no_duplicates(self):
        """Test a target already hosting a kept replica appears once."""
        assert replace_brokers([1, 2], [1], [2, 3]) == [2, 3]


class TestBrokerMigrator:
    """Test broker_migrator."""

    def test_end_to_end(self, admin):
        """Test moving the replica on A to C leaves replicas on C and B."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)
        before = [r.broker for r in admin.replicas({"test"})[tp]]
        assert before == [1, 2]

        submitted = broker_migrator({tp: ([1], [3])}, admin)

        assert submitted == {tp: [3, 2]}

        wait(admin, {tp: Assignment(before, submitted[tp])})

        replicas = admin.replicas({"test"})[tp]
        assert len(replicas) == 2
        assert {r.broker for r in replicas} == {3, 2}

    def test_one_submission_per_partition_in_order(self, admin):
        """Test each key is submitted once, in sorted order."""
        admin.create_topic("test", partitions=3, replicas=1)
        tp0, tp1, tp2 = (TopicPartition("test", i) for i in range(3))

        plan = {
            tp2: ([3], [1]),
            tp0: ([1], [2]),
            tp1: ([2], [3]),
        }

        broker_migrator(plan, admin)

        assert admin.submissions == [
            ("brokers", tp0, [2]),
            ("brokers", tp1, [3]),
            ("brokers", tp2, [1]),
        ]

    def test_untouched_replicas_kept(self, admin):
        """Test brokers outside the source set stay in the list."""
        admin.create_topic("test", partitions=1, replicas=3)
        admin.add_broker(4, ["/tmp/log-4-0"])
        tp = TopicPartition("test", 0)

        submitted = broker_migrator({tp: ([2], [4])}, admin)

        assert submitted[tp] == [1, 4, 3]
        assert len(set(submitted[tp])) == len(submitted[tp])

    def test_source_not_hosting(self, admin):
        """Test a source broker without a replica is rejected."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError) as exc_info:
            broker_migrator({tp: ([3], [1])}, admin)

        assert exc_info.value.topic_partition == tp
        assert admin.submissions == []

    def test_source_equals_target(self, admin):
        """Test a no-op entry is rejected."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError):
            broker_migrator({tp: ([1], [1])}, admin)

    def test_dead_target(self, admin):
        """Test targets must be live brokers."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError) as exc_info:
            broker_migrator({tp: ([1], [9])}, admin)

        assert "not live" in exc_info.value.reason

    def test_unknown_partition(self, admin):
        """Test a plan entry for a missing partition is rejected."""
        with pytest.raises(PlanValidationError):
            broker_migrator({TopicPartition("missing", 0): ([1], [2])}, admin)

    def test_valid_entries_proceed(self, admin):
        """Test one bad entry does not stop the others, and the caller sees both."""
        admin.create_topic("test", partitions=2, replicas=1)
        tp0, tp1 = TopicPartition("test", 0), TopicPartition("test", 1)

        with pytest.raises(MigrationError) as exc_info:
            broker_migrator({tp0: ([1], [3]), tp1: ([1], [3])}, admin)

        error = exc_info.value
        assert error.submitted == {tp0: [3]}
        assert list(error.failures) == [tp1]
        assert isinstance(error.__cause__, PlanValidationError)
        assert error.__cause__.topic_partition == tp1
        assert admin.submissions == [("brokers", tp0, [3])]

    def test_single_rejection_nothing_submitted(self, admin):
        """Test a lone failing entry is raised as is."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError) as exc_info:
            broker_migrator({tp: ([2], [3])}, admin)

        assert exc_info.value.topic_partition == tp
        assert admin.submissions == []

    def test_several_failures(self, admin):
        """Test several failing entries are reported together."""
        admin.create_topic("test", partitions=3, replicas=1)
        tp0, tp1, tp2 = (TopicPartition("test", i) for i in range(3))

        with pytest.raises(MigrationError) as exc_info:
            broker_migrator({tp0: ([2], [3]), tp1: ([2], [1]), tp2: ([1], [2])}, admin)

        assert set(exc_info.value.failures) == {tp0, tp2}
        assert all(isinstance(e, PlanValidationError) for e in exc_info.value.failures.values())
        assert exc_info.value.submitted == {tp1: [1]}

    def test_conflict_surfaced(self):
        """Test an in-flight partition is reported, not retried."""
        cluster = InMemoryAdmin.of(convergence_polls=10)
        cluster.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)

        broker_migrator({tp: ([1], [3])}, cluster)

        with pytest.raises(ConflictError):
            broker_migrator({tp: ([2], [1])}, cluster)

        assert len(cluster.submissions) == 1

    def test_transport_error_kept(self):
        """Test a submission error is reported with what went through, and not retried."""
        tp0, tp1 = TopicPartition("test", 0), TopicPartition("test", 1)
        error = TransportError("broker unreachable", topic_partition=tp1)
        cluster = FlakyAdmin(
            {tp1: error},
            brokers={1: ["/a"], 2: ["/b"], 3: ["/c"]},
        )
        cluster.create_topic("test", partitions=2, replicas=1)

        with pytest.raises(MigrationError) as exc_info:
            broker_migrator({tp0: ([1], [3]), tp1: ([2], [3])}, cluster)

        assert exc_info.value.failures == {tp1: error}
        assert exc_info.value.__cause__ is error
        assert exc_info.value.submitted == {tp0: [3]}
        assert cluster.calls == [tp0, tp1]
        assert [s[1] for s in cluster.submissions] == [tp0]

    def test_transport_error_unmodified(self):
        """Test a lone submission error is re-raised as is."""
        tp = TopicPartition("test", 0)
        error = TransportError("broker unreachable", topic_partition=tp)
        cluster = FlakyAdmin({tp: error}, brokers={1: ["/a"], 2: ["/b"]})
        cluster.create_topic("test", partitions=1, replicas=1)

        with pytest.raises(TransportError) as exc_info:
            broker_migrator({tp: ([1], [2])}, cluster)

        assert exc_info.value is error
        assert cluster.calls == [tp]

    def test_closed_admin(self, admin):
        """Test a dead connection surfaces as a transport error."""
        admin.create_topic("test")
        admin.close()

        with pytest.raises(TransportError):
            broker_migrator({TopicPartition("test", 0): ([1], [2])}, admin)


class TestPathMigrator:
    """Test path_migrator."""

    def test_moves_folder_only(self, admin):
        """Test the replica changes folder but not broker."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)

        submitted = path_migrator({tp: ({"/tmp/log-1-0"}, {"/tmp/log-1-1"})}, admin, 1)

        assert submitted == {tp: "/tmp/log-1-1"}
        assert admin.submissions == [("path", tp, (1, "/tmp/log-1-1"))]

        in_flight = admin.replicas({"test"})[tp]
        assert {r.broker for r in in_flight} == {1, 2}

        done = admin.replicas({"test"})[tp]
        assert [(r.broker, r.path) for r in done] == [(1, "/tmp/log-1-1"), (2, "/tmp/log-2-0")]

    def test_wrong_source_path(self, admin):
        """Test the declared source must be the current folder."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError):
            path_migrator({tp: ({"/tmp/log-1-1"}, {"/tmp/log-1-0"})}, admin, 1)

    def test_unknown_target_folder(self, admin):
        """Test targets must be configured on the broker."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError):
            path_migrator({tp: ({"/tmp/log-1-0"}, {"/tmp/log-2-1"})}, admin, 1)

    def test_already_in_target(self, admin):
        """Test moving to the current folder is rejected."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError):
            path_migrator({tp: ({"/tmp/log-1-0"}, {"/tmp/log-1-0"})}, admin, 1)

    def test_broker_without_replica(self, admin):
        """Test the broker must host the partition."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        with pytest.raises(PlanValidationError):
            path_migrator({tp: ({"/tmp/log-3-0"}, {"/tmp/log-3-1"})}, admin, 3)


class TestExecute:
    """Test execute and verify."""

    def test_execute(self, admin):
        """Test a request is planned, submitted and reported."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        request = MigrationRequest(
            from_brokers={1},
            to_brokers=[2],
            topics={"test"},
            partitions={0},
        )
        assignments = execute(admin, request)

        assert assignments[tp].broker_source == (1,)
        assert assignments[tp].broker_sink == (2,)
        assert admin.submissions == [("brokers", tp, [2])]

        wait(admin, assignments)

        assert verify(admin, assignments) == {tp: True}

    def test_verify_mode_submits_nothing(self, admin):
        """Test verify mode only computes the assignment."""
        admin.create_topic("test", partitions=1, replicas=1)
        tp = TopicPartition("test", 0)

        request = MigrationRequest(
            from_brokers={1},
            to_brokers=[2],
            topics={"test"},
            verify=True,
        )
        assignments = execute(admin, request)

        assert assignments[tp] == Assignment((1,), (2,))
        assert admin.submissions == []
        assert [r.broker for r in admin.replicas({"test"})[tp]] == [1]

    def test_default_targets(self, admin):
        """Test targets default to live brokers outside the source set."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)

        assignments = execute(admin, MigrationRequest(from_brokers={1}, topics={"test"}))

        assert assignments[tp] == Assignment((1, 2), (3, 2))

    def test_topic_selection_skips_other_partitions(self, admin):
        """Test only partitions hosted on the source brokers are moved."""
        admin.create_topic("test", partitions=3, replicas=1)

        assignments = execute(
            admin,
            MigrationRequest(from_brokers={1}, to_brokers=[3], topics={"test"}),
        )

        assert list(assignments) == [TopicPartition("test", 0)]
        assert assignments[TopicPartition("test", 0)].broker_sink == (3,)

    def test_explicit_partition_not_on_source(self, admin):
        """Test a named partition must live on the source brokers."""
        admin.create_topic("test", partitions=3, replicas=1)

        with pytest.raises(PlanValidationError) as exc_info:
            execute(
                admin,
                MigrationRequest(from_brokers={1}, to_brokers=[3], topics={"test"}, partitions={1}),
            )

        assert exc_info.value.topic_partition == TopicPartition("test", 1)
        assert admin.submissions == []

    def test_partial_failure_reports_assignments(self, admin):
        """Test submitted assignments survive a failing entry."""
        admin.create_topic("test", partitions=3, replicas=1)
        tp0, tp1 = TopicPartition("test", 0), TopicPartition("test", 1)

        with pytest.raises(MigrationError) as exc_info:
            execute(
                admin,
                MigrationRequest(from_brokers={1}, to_brokers=[3], topics={"test"}, partitions={0, 1}),
            )

        error = exc_info.value
        assert error.submitted == {tp0: Assignment((1,), (3,))}
        assert list(error.failures) == [tp1]
        assert isinstance(error.__cause__, PlanValidationError)
        assert admin.submissions == [("brokers", tp0, [3])]

    def test_unknown_topic(self, admin):
        """Test a topic that does not exist is rejected before submitting."""
        admin.create_topic("test", partitions=1, replicas=1)

        with pytest.raises(PlanValidationError) as exc_info:
            execute(
                admin,
                MigrationRequest(from_brokers={1}, to_brokers=[2], topics={"test", "tset"}),
            )

        assert exc_info.value.topic_partition is None
        assert "tset" in exc_info.value.reason
        assert admin.submissions == []

    def test_missing_partition(self, admin):
        """Test naming a partition that does not exist fails."""
        admin.create_topic("test", partitions=1, replicas=1)

        with pytest.raises(PlanValidationError):
            execute(
                admin,
                MigrationRequest(from_brokers={1}, to_brokers=[2], topics={"test"}, partitions={5}),
            )

    def test_not_enough_targets(self, admin):
        """Test targets must be outside the current placement."""
        admin.create_topic("test", partitions=1, replicas=2)

        with pytest.raises(PlanValidationError):
            execute(admin, MigrationRequest(from_brokers={1}, to_brokers=[2], topics={"test"}))

    def test_empty_request(self):
        """Test requests need source brokers and topics."""
        with pytest.raises(ValueError):
            MigrationRequest(from_brokers=set(), topics={"test"})

        with pytest.raises(ValueError):
            MigrationRequest(from_brokers={1}, topics=set())

    def test_verify_before_and_after(self, admin):
        """Test verify tracks convergence without resubmitting."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)
        migrator = ReplicaMigrator(admin)

        assignments = migrator.execute(
            MigrationRequest(from_brokers={1}, to_brokers=[3], topics={"test"})
        )

        with pytest.raises(VerificationError) as exc_info:
            migrator.verify_or_raise(assignments)
        assert exc_info.value.pending == [tp]

        assert migrator.verify(assignments) == {tp: True}
        migrator.verify_or_raise(assignments)
        assert len(admin.submissions) == 1


class TestAssignment:
    """Test Assignment."""

    def test_replicas_to_add_and_remove(self):
        """Test diffing before and after."""
        assignment = Assignment([1, 2, 3], [2, 3, 4])

        assert assignment.replicas_to_add() == [4]
        assert assignment.replicas_to_remove() == [1]
        assert assignment.to_dict() == {"broker_source": [1, 2, 3], "broker_sink": [2, 3, 4]}

    def test_hosting_brokers_ignores_adding(self, admin):
        """Test replicas being created do not count as hosting."""
        admin.create_topic("test", partitions=1, replicas=2)
        tp = TopicPartition("test", 0)
        admin.migrate_brokers(tp, [3, 2])

        assert hosting_brokers(admin.replicas({"test"})[tp]) == [2, 1]
