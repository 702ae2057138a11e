"""
Catalog of broker metrics exposed under ``kafka.server``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from logadmin.metrics.bean import BeanQuery, HasBeanObject
from logadmin.metrics.client import MBeanClient
from logadmin.metrics.fetcher import Fetcher


@dataclass(frozen=True)
class BrokerTopicMetricsResult(HasBeanObject):
    """Meter reading of one ``BrokerTopicMetrics`` bean."""

    @property
    def metric_name(self) -> str:
        return self.key_property("name", "")

    @property
    def topic(self) -> str:
        return self.key_property("topic")

    @property
    def count(self) -> int:
        return int(self.attribute("Count", 0))

    @property
    def mean_rate(self) -> float:
        return float(self.attribute("MeanRate", 0.0))

    @property
    def one_minute_rate(self) -> float:
        return float(self.attribute("OneMinuteRate", 0.0))

    @property
    def five_minute_rate(self) -> float:
        return float(self.attribute("FiveMinuteRate", 0.0))

    @property
    def fifteen_minute_rate(self) -> float:
        return float(self.attribute("FifteenMinuteRate", 0.0))

    @property
    def rate_unit(self) -> str:
        return str(self.attribute("RateUnit", "SECONDS"))


class BrokerTopic(str, Enum):
    """Meters of ``kafka.server:type=BrokerTopicMetrics``."""

    BytesInPerSec = "BytesInPerSec"
    BytesOutPerSec = "BytesOutPerSec"
    MessagesInPerSec = "MessagesInPerSec"
    BytesRejectedPerSec = "BytesRejectedPerSec"
    ReplicationBytesInPerSec = "ReplicationBytesInPerSec"
    ReplicationBytesOutPerSec = "ReplicationBytesOutPerSec"
    FailedProduceRequestsPerSec = "FailedProduceRequestsPerSec"
    FailedFetchRequestsPerSec = "FailedFetchRequestsPerSec"
    TotalProduceRequestsPerSec = "TotalProduceRequestsPerSec"
    TotalFetchRequestsPerSec = "TotalFetchRequestsPerSec"

    def metric_name(self) -> str:
        return self.value

    def query(self) -> BeanQuery:
        """Per-topic beans of this meter."""
        return BeanQuery(
            "kafka.server",
            {"type": "BrokerTopicMetrics", "name": self.value, "topic": "*"},
        )

    def aggregate_query(self) -> BeanQuery:
        """The broker-wide bean of this meter."""
        return BeanQuery("kafka.server", {"type": "BrokerTopicMetrics", "name": self.value})

    def fetch(self, client: MBeanClient) -> List[BrokerTopicMetricsResult]:
        """Read the per-topic meters from one broker."""
        return [BrokerTopicMetricsResult(bean) for bean in client.query_beans(self.query())]

    def fetcher(self) -> Fetcher:
        return Fetcher(self.value, self.fetch)

    @classmethod
    def of(cls, name: str) -> "BrokerTopic":
        """Look up a meter by name, ignoring case."""
        for member in cls:
            if member.value.lower() == name.lower():
                return member
        raise ValueError(f"Unknown broker topic metric: {name}")
