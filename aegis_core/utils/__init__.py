"""Shared helpers: datetime parsing, score rounding, LLM JSON repair."""

from aegis_core.utils.datetime import parse_datetime, utc_now
from aegis_core.utils.json_repair import JSONRepairKit
from aegis_core.utils.scoring import round_half_up, weighted_round

__all__ = [
    "JSONRepairKit",
    "parse_datetime",
    "round_half_up",
    "utc_now",
    "weighted_round",
]
