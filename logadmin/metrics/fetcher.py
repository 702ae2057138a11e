"""
Named probes turning raw beans into typed results.
"""

from typing import Callable, List, Optional

from logadmin.metrics.bean import HasBeanObject
from logadmin.metrics.client import MBeanClient


class Fetcher:
    """
    A named probe run against one broker's MBean client.

    Attributes:
        name: Probe name, used in logs
    """

    def __init__(self, name: str, fetch: Callable[[MBeanClient], List[HasBeanObject]]):
        self.name = name
        self._fetch = fetch

    def fetch(self, client: MBeanClient) -> List[HasBeanObject]:
        return list(self._fetch(client))

    def __call__(self, client: MBeanClient) -> List[HasBeanObject]:
        return self.fetch(client)

    def __repr__(self) -> str:
        return f"Fetcher({self.name})"

    @staticmethod
    def of(*fetchers: Optional["Fetcher"]) -> Optional["Fetcher"]:
        """
        Combine fetchers into one that returns all their results.

        ``None`` entries are skipped; returns None if nothing is left.
        """
        fetchers = [f for f in fetchers if f is not None]
        if not fetchers:
            return None
        if len(fetchers) == 1:
            return fetchers[0]

        def fetch_all(client: MBeanClient) -> List[HasBeanObject]:
            results: List[HasBeanObject] = []
            for fetcher in fetchers:
                results.extend(fetcher.fetch(client))
            return results

        return Fetcher("+".join(f.name for f in fetchers), fetch_all)
