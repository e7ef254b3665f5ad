"""Deterministic score arithmetic.

Scores are combined in decimal arithmetic and rounded half-up, so
``0.7 * 55`` is exactly 38.5 and rounds to 39 on every platform.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple, Union

Number = Union[int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps the shortest repr, so 0.7 becomes Decimal("0.7")
    return Decimal(str(value))


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def weighted_round(pairs: Iterable[Tuple[Number, Number]]) -> int:
    """round(sum(weight * value)) computed exactly.

    Args:
        pairs: (weight, value) tuples
    """
    total = sum((to_decimal(w) * to_decimal(v) for w, v in pairs), Decimal("0"))
    return round_half_up(total)


def weights_sum_to_one(weights: Iterable[Number]) -> bool:
    return sum((to_decimal(w) for w in weights), Decimal("0")) == Decimal("1")
