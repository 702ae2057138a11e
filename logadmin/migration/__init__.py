"""
Replica migration for live clusters.

Moves partition replicas between brokers and storage folders without
waiting for the cluster to converge.
"""

from logadmin.migration.migrator import (
    ReplicaMigrator,
    broker_migrator,
    execute,
    path_migrator,
    verify,
)
from logadmin.migration.monitor import (
    ReassignmentMonitor,
    ReassignmentProgress,
    is_converged,
    is_path_converged,
)
from logadmin.migration.plan import Assignment, BrokerPlan, MigrationRequest, PathPlan

__all__ = [
    # Migrator
    "ReplicaMigrator",
    "broker_migrator",
    "path_migrator",
    "execute",
    "verify",
    # Plans
    "Assignment",
    "BrokerPlan",
    "PathPlan",
    "MigrationRequest",
    # Monitoring
    "ReassignmentMonitor",
    "ReassignmentProgress",
    "is_converged",
    "is_path_converged",
]
