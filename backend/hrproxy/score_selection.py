"""Pick the canonical score record when upstream holds duplicates for one identity."""

from __future__ import annotations

import math
from typing import Any, Dict, Optional, Sequence, Tuple

from .models import SCORE_FIELD, STREAK_FIELD
from .odata import date_millis


def coerce_number(value: Any) -> float:
    """Numeric value of an upstream field; thousands separators stripped, anything else is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).replace(",", "").strip())
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def modified_millis(record: Dict[str, Any]) -> int:
    stamp = record.get("lastModifiedDateTime") or record.get("createdDateTime")
    return date_millis(stamp)


def ranking_key(record: Dict[str, Any]) -> Tuple[float, float, int]:
    return (
        coerce_number(record.get(SCORE_FIELD)),
        coerce_number(record.get(STREAK_FIELD)),
        modified_millis(record),
    )


def pick_best(records: Sequence[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Highest score, then highest streak, then most recently modified.

    Records that tie on all three keep upstream order (the earliest wins).
    """
    if not records:
        return None
    return max(records, key=ranking_key)


__all__ = ["coerce_number", "modified_millis", "pick_best", "ranking_key"]
