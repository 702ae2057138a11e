"""
Normalizers rescaling raw broker costs onto comparable scales.

A normalizer is anything with ``normalize(Dict[int, float]) -> Dict[int,
float]`` that returns exactly the brokers it was given. Zero-variance input
(every broker reporting the same cost) is a normal fleet state: by default
every broker then gets the neutral score 0.5; ``strict=True`` raises
``DegenerateNormalizationError`` instead.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Protocol, runtime_checkable

from logadmin.errors import DegenerateNormalizationError
from logadmin.utils.logging import get_logger

logger = get_logger(__name__)

NEUTRAL_SCORE = 0.5


@runtime_checkable
class Normalizer(Protocol):
    """Rescales a complete score set."""

    def normalize(self, scores: Dict[int, float]) -> Dict[int, float]:
        ...


def round_half_up(value: float, precision: Optional[int]) -> float:
    """
    Round to ``precision`` decimals with halves rounded away from zero.

    Works on the shortest decimal form of the float, so 0.145 rounds to
    0.15 even though its binary value is slightly below.
    """
    if precision is None:
        return value
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _degenerate(name: str, scores: Dict[int, float], strict: bool) -> Dict[int, float]:
    if strict:
        raise DegenerateNormalizationError(name, scores)

    logger.warning(
        "Zero-variance costs, using neutral score",
        normalizer=name,
        brokers=sorted(scores),
        score=NEUTRAL_SCORE,
    )
    return {broker_id: NEUTRAL_SCORE for broker_id in scores}


class TScoreNormalizer:
    """
    T-score: ``0.5 + (score - mean) / (stdev * 10)``.

    Uses the population standard deviation. Results are rounded half-up to
    ``precision`` decimals (None keeps full precision).
    """

    def __init__(self, precision: Optional[int] = 2, strict: bool = False):
        self.precision = precision
        self.strict = strict

    @classmethod
    def from_config(cls, config, strict: bool = False) -> "TScoreNormalizer":
        """Create a normalizer rounding to ``cost.precision`` decimals."""
        return cls(precision=config.get("cost.precision", 2), strict=strict)

    def normalize(self, scores: Dict[int, float]) -> Dict[int, float]:
        if not scores:
            return {}

        if len(set(scores.values())) == 1:
            return _degenerate("TScore", scores, self.strict)

        count = len(scores)
        mean = sum(scores.values()) / count
        variance = sum((v - mean) ** 2 for v in scores.values()) / count
        stdev = math.sqrt(variance)

        return {
            broker_id: round_half_up(NEUTRAL_SCORE + (v - mean) / (stdev * 10), self.precision)
            for broker_id, v in scores.items()
        }


class MinMaxNormalizer:
    """Linear rescale onto [0, 1]: ``(score - min) / (max - min)``."""

    def __init__(self, precision: Optional[int] = None, strict: bool = False):
        self.precision = precision
        self.strict = strict

    def normalize(self, scores: Dict[int, float]) -> Dict[int, float]:
        if not scores:
            return {}

        low = min(scores.values())
        high = max(scores.values())
        if high == low:
            return _degenerate("MinMax", scores, self.strict)

        return {
            broker_id: round_half_up((v - low) / (high - low), self.precision)
            for broker_id, v in scores.items()
        }


class ProportionNormalizer:
    """Share of the total: ``score / sum(scores)``; a zero total splits evenly."""

    def __init__(self, precision: Optional[int] = None):
        self.precision = precision

    def normalize(self, scores: Dict[int, float]) -> Dict[int, float]:
        if not scores:
            return {}

        total = sum(scores.values())
        if total == 0:
            return {broker_id: round_half_up(1 / len(scores), self.precision) for broker_id in scores}

        return {broker_id: round_half_up(v / total, self.precision) for broker_id, v in scores.items()}


def get_normalizer(name: str, **kwargs) -> Normalizer:
    """
    Get normalizer by name.

    Args:
        name: tscore, minmax or proportion

    Returns:
        Normalizer instance
    """
    normalizers = {
        "tscore": TScoreNormalizer,
        "minmax": MinMaxNormalizer,
        "proportion": ProportionNormalizer,
    }
    if name.lower() not in normalizers:
        raise ValueError(f"Unknown normalizer: {name}")
    return normalizers[name.lower()](**kwargs)
