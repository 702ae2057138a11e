"""
Error taxonomy for migration and cost computation.

Every error names the partition or broker it is about so that a caller
handling a multi-partition plan can tell which entry failed.
"""

from typing import Dict, Iterable, List, Optional


class LogAdminError(Exception):
    """Base class for all logadmin errors."""
    pass


class PlanValidationError(LogAdminError):
    """
    A plan entry does not match live placement and was not submitted.

    Attributes:
        topic_partition: Offending partition, None when the whole request
            is rejected
        reason: Human readable reason
    """

    def __init__(self, topic_partition, reason: str):
        self.topic_partition = topic_partition
        self.reason = reason
        if topic_partition is None:
            super().__init__(f"Invalid migration request: {reason}")
        else:
            super().__init__(f"Invalid plan entry for {topic_partition}: {reason}")


class TransportError(LogAdminError):
    """
    Network, auth or unavailable-endpoint failure talking to the cluster.

    Never retried by logadmin itself.
    """

    def __init__(self, message: str, topic_partition=None, broker_id: Optional[int] = None):
        self.topic_partition = topic_partition
        self.broker_id = broker_id
        super().__init__(message)


class ConflictError(LogAdminError):
    """The cluster already has a reassignment in flight for a partition."""

    def __init__(self, topic_partition):
        self.topic_partition = topic_partition
        super().__init__(f"Reassignment already in progress for {topic_partition}")


class DegenerateNormalizationError(LogAdminError):
    """A strict normalizer was given a score set it cannot rescale."""

    def __init__(self, normalizer: str, broker_ids: Iterable[int]):
        self.normalizer = normalizer
        self.broker_ids = sorted(broker_ids)
        super().__init__(
            f"{normalizer} cannot normalize zero-variance scores for brokers {self.broker_ids}"
        )


class MigrationError(LogAdminError):
    """
    Entries of one plan failed after others were submitted, or several failed.

    Chained to the failure of the first failing partition.

    Attributes:
        failures: Partition -> exception raised for that entry
        submitted: Partition -> what reached the cluster: the replica list,
            the target folder, or the Assignment when raised by execute
    """

    def __init__(self, failures: Dict, submitted: Dict):
        self.failures = failures
        self.submitted = submitted
        names = ", ".join(str(tp) for tp in sorted(failures))
        super().__init__(f"{len(failures)} plan entries failed: {names}")


class VerificationError(LogAdminError):
    """Placement does not yet match the recorded target assignment."""

    def __init__(self, pending: List):
        self.pending = sorted(pending)
        names = ", ".join(str(tp) for tp in self.pending)
        super().__init__(f"Partitions not yet at target placement: {names}")
