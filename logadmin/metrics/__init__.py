"""
Metric fetch pipeline.

Reads broker beans over the Jolokia bridge and wraps them into typed results.
"""

from logadmin.metrics.bean import BeanObject, BeanQuery, HasBeanObject
from logadmin.metrics.client import MBeanClient
from logadmin.metrics.cluster_bean import ClusterBean
from logadmin.metrics.fetcher import Fetcher
from logadmin.metrics.kafka import BrokerTopic, BrokerTopicMetricsResult
from logadmin.metrics.receiver import BeanCollector, Receiver

__all__ = [
    "BeanObject",
    "BeanQuery",
    "HasBeanObject",
    "MBeanClient",
    "ClusterBean",
    "Fetcher",
    "BrokerTopic",
    "BrokerTopicMetricsResult",
    "BeanCollector",
    "Receiver",
]
