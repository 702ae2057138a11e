"""
logadmin - cluster administration for a distributed log platform.

This package provides:
- Replica migration across brokers and storage folders on a live cluster
- Broker load cost functions and score normalizers
- A metric fetch pipeline over the Jolokia JMX bridge
"""

__version__ = "0.1.0"

from logadmin import admin, cost, metrics, migration

__all__ = [
    "admin",
    "cost",
    "metrics",
    "migration",
]
