"""
Scoped metric receivers bound to one broker each.

A receiver owns the connection to a broker's metric endpoint and must be
closed on every exit path; use it as a context manager.
"""

from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import requests

from logadmin.errors import TransportError
from logadmin.metrics.bean import HasBeanObject
from logadmin.metrics.client import MBeanClient
from logadmin.metrics.cluster_bean import ClusterBean
from logadmin.metrics.fetcher import Fetcher
from logadmin.utils.logging import get_logger

logger = get_logger(__name__)


class Receiver:
    """
    Runs one fetcher against one broker on demand.

    Every ``current()`` call reads the endpoint again, so the snapshot
    reflects the latest observation and can be requested repeatedly.
    """

    def __init__(self, client: MBeanClient, fetcher: Fetcher, broker_id: Optional[int] = None):
        """
        Initialize receiver.

        Args:
            client: MBean client owned by this receiver
            fetcher: Probe to run
            broker_id: Broker the endpoint belongs to
        """
        self.client = client
        self.fetcher = fetcher
        self.broker_id = broker_id

    def current(self) -> Tuple[HasBeanObject, ...]:
        """
        Fetch a fresh snapshot.

        Returns:
            Typed results, possibly empty

        Raises:
            TransportError: If the receiver is closed or the endpoint fails
        """
        if self.client.closed:
            raise TransportError(
                f"Receiver for {self.client.url} is closed", broker_id=self.broker_id
            )

        results = tuple(self.fetcher.fetch(self.client))

        logger.debug(
            "Received metrics",
            broker_id=self.broker_id,
            fetcher=self.fetcher.name,
            results=len(results),
        )

        return results

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "Receiver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class BeanCollector:
    """
    Opens receivers for brokers and gathers their snapshots.
    """

    def __init__(
        self,
        port: int = 8778,
        path: str = "/jolokia/",
        timeout_ms: int = 10000,
        session_factory: Callable[[], Any] = requests.Session,
    ):
        """
        Initialize collector.

        Args:
            port: Default metric endpoint port
            path: Jolokia path on each broker
            timeout_ms: Per-request timeout
            session_factory: Creates HTTP sessions for new receivers
        """
        self.port = port
        self.path = path
        self.timeout_ms = timeout_ms
        self.session_factory = session_factory

    @classmethod
    def from_config(cls, config, session_factory: Callable[[], Any] = requests.Session) -> "BeanCollector":
        """Create a collector using the ``metrics`` config section."""
        return cls(
            port=config.get("metrics.jolokia_port", 8778),
            path=config.get("metrics.jolokia_path", "/jolokia/"),
            timeout_ms=config.get("metrics.timeout_ms", 10000),
            session_factory=session_factory,
        )

    def register(
        self,
        host: str,
        fetcher: Fetcher,
        port: Optional[int] = None,
        broker_id: Optional[int] = None,
    ) -> Receiver:
        """
        Open a receiver for one broker.

        Args:
            host: Broker host
            fetcher: Probe to run
            port: Endpoint port, defaults to the collector's port
            broker_id: Broker id, used to key snapshots

        Returns:
            Receiver; the caller must close it
        """
        client = MBeanClient.of(
            host,
            port=port or self.port,
            path=self.path,
            timeout_ms=self.timeout_ms,
            session_factory=self.session_factory,
        )

        logger.info(
            "Registered receiver",
            host=host,
            port=port or self.port,
            broker_id=broker_id,
            fetcher=fetcher.name,
        )

        return Receiver(client, fetcher, broker_id)

    @staticmethod
    def cluster_bean(receivers: Iterable[Receiver]) -> ClusterBean:
        """
        Snapshot several receivers into one ClusterBean.

        Receivers without a broker id are rejected.
        """
        beans: Dict[int, Tuple[HasBeanObject, ...]] = {}
        for receiver in receivers:
            if receiver.broker_id is None:
                raise ValueError(f"Receiver for {receiver.client.url} has no broker id")
            beans[receiver.broker_id] = beans.get(receiver.broker_id, ()) + receiver.current()
        return ClusterBean.of(beans)
