"""
Metric snapshot of a whole cluster.
"""

from typing import Dict, Iterable, List, Mapping, Tuple, Type

from logadmin.metrics.bean import HasBeanObject


class ClusterBean:
    """
    Typed metric results grouped by broker id.

    Immutable once built; cost functions read it without coordination.
    """

    def __init__(self, beans: Mapping[int, Iterable[HasBeanObject]]):
        self._beans: Dict[int, Tuple[HasBeanObject, ...]] = {
            broker_id: tuple(results) for broker_id, results in beans.items()
        }

    @classmethod
    def of(cls, beans: Mapping[int, Iterable[HasBeanObject]]) -> "ClusterBean":
        return cls(beans)

    def all(self) -> Dict[int, Tuple[HasBeanObject, ...]]:
        """Broker id -> results."""
        return dict(self._beans)

    def broker_ids(self) -> List[int]:
        return sorted(self._beans)

    def results(self, broker_id: int, result_type: Type[HasBeanObject] = HasBeanObject) -> List[HasBeanObject]:
        """Results of one broker that are instances of ``result_type``."""
        return [r for r in self._beans.get(broker_id, ()) if isinstance(r, result_type)]

    def __len__(self) -> int:
        return len(self._beans)

    def __eq__(self, other) -> bool:
        return isinstance(other, ClusterBean) and self._beans == other._beans

    def __repr__(self) -> str:
        sizes = {broker_id: len(results) for broker_id, results in sorted(self._beans.items())}
        return f"ClusterBean({sizes})"


ClusterBean.EMPTY = ClusterBean({})
