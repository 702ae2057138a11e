"""
MBean client for the Jolokia JMX-over-HTTP bridge.

Reads beans from one broker with ``POST {url}`` and a
``{"type": "read", "mbean": <object name>}`` body. A pattern read returns
every matching bean; an exact read returns the attributes of one bean.
"""

from typing import Any, Callable, Dict, List, Optional

import requests

from logadmin.errors import TransportError
from logadmin.metrics.bean import BeanObject, BeanQuery
from logadmin.utils.logging import get_logger

logger = get_logger(__name__)


class MBeanClient:
    """
    Typed client for one broker's metric endpoint.

    Owns an HTTP session until closed.
    """

    def __init__(
        self,
        url: str,
        timeout_ms: int = 10000,
        session_factory: Callable[[], Any] = requests.Session,
    ):
        """
        Initialize MBean client.

        Args:
            url: Jolokia endpoint, e.g. http://broker-1:8778/jolokia/
            timeout_ms: Per-request timeout
            session_factory: Creates the HTTP session
        """
        self.url = url
        self.timeout_ms = timeout_ms
        self._session = session_factory()
        self._closed = False

        logger.debug("MBeanClient opened", url=url)

    @classmethod
    def of(
        cls,
        host: str,
        port: int = 8778,
        path: str = "/jolokia/",
        timeout_ms: int = 10000,
        session_factory: Callable[[], Any] = requests.Session,
    ) -> "MBeanClient":
        """Create a client for host:port."""
        return cls(
            f"http://{host}:{port}{path}",
            timeout_ms=timeout_ms,
            session_factory=session_factory,
        )

    def query_beans(self, query: BeanQuery) -> List[BeanObject]:
        """
        Read every bean selected by a query.

        Args:
            query: Bean selector

        Returns:
            Matching beans, sorted by object name; empty if none exist

        Raises:
            TransportError: If the endpoint is unreachable or answers with
                an error other than "no such bean"
        """
        body = self._read(query.object_name())
        if body is None:
            return []

        timestamp = int(body.get("timestamp", 0)) * 1000
        value = body.get("value") or {}

        if query.is_pattern():
            beans = [
                BeanObject.of(name, attributes or {}, timestamp)
                for name, attributes in value.items()
            ]
        else:
            beans = [BeanObject(query.domain, dict(query.properties), dict(value), timestamp)]

        beans = [b for b in beans if query.matches(b)]
        return sorted(beans, key=lambda b: b.object_name())

    def query_bean(self, query: BeanQuery) -> Optional[BeanObject]:
        """Read a single bean, or None if it does not exist."""
        beans = self.query_beans(query)
        return beans[0] if beans else None

    def close(self) -> None:
        """Close the HTTP session."""
        if not self._closed:
            self._closed = True
            self._session.close()
            logger.debug("MBeanClient closed", url=self.url)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "MBeanClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _read(self, mbean: str) -> Optional[Dict[str, Any]]:
        """Issue one read request; None means no bean matched."""
        if self._closed:
            raise TransportError(f"MBean client for {self.url} is closed")

        try:
            response = self._session.post(
                self.url,
                json={"type": "read", "mbean": mbean},
                timeout=self.timeout_ms / 1000,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to read {mbean} from {self.url}: {e}") from e
        except ValueError as e:
            raise TransportError(f"Invalid response for {mbean} from {self.url}: {e}") from e

        status = body.get("status", 200)
        if status == 404:
            logger.debug("No bean matched", url=self.url, mbean=mbean)
            return None
        if status != 200:
            raise TransportError(
                f"Reading {mbean} from {self.url} failed with {status}: "
                f"{body.get('error_type', '')} {body.get('error', '')}".strip()
            )

        return body
