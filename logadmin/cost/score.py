"""
Per-broker cost scores.
"""

from typing import Dict, Mapping

from logadmin.utils.logging import format_table, get_logger

logger = get_logger(__name__)


class CostScore:
    """
    Broker id -> score.

    The key set is fixed at construction; normalizing yields a new score
    over exactly the same brokers.
    """

    def __init__(self, scores: Mapping[int, float]):
        self._scores: Dict[int, float] = {broker_id: float(v) for broker_id, v in scores.items()}

    def value(self) -> Dict[int, float]:
        """Copy of the scores."""
        return dict(self._scores)

    def broker_ids(self):
        return sorted(self._scores)

    def normalize(self, normalizer) -> "CostScore":
        """
        Rescale the whole score set.

        Args:
            normalizer: Object with ``normalize(Dict[int, float])``

        Returns:
            New CostScore over the same brokers

        Raises:
            ValueError: If the normalizer changed the broker set
        """
        normalized = normalizer.normalize(self.value())
        if set(normalized) != set(self._scores):
            raise ValueError(
                f"{type(normalizer).__name__} changed brokers "
                f"{sorted(self._scores)} -> {sorted(normalized)}"
            )
        return CostScore(normalized)

    def to_table(self) -> str:
        """Scores as a flat, broker-sorted table."""
        return format_table(self._scores, key_header="broker", value_header="score")

    def log(self, name: str) -> None:
        """Log the scores, one field per broker."""
        logger.info(
            "Broker cost",
            cost=name,
            scores={str(k): v for k, v in sorted(self._scores.items())},
        )

    def __getitem__(self, broker_id: int) -> float:
        return self._scores[broker_id]

    def __contains__(self, broker_id: int) -> bool:
        return broker_id in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def __eq__(self, other) -> bool:
        return isinstance(other, CostScore) and self._scores == other._scores

    def __repr__(self) -> str:
        return f"CostScore({dict(sorted(self._scores.items()))})"
