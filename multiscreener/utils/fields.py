"""
Numeric field access for raw API records.

Every engine states, per field, whether a missing value excludes the stock
(``get_number`` returning None) or falls back to a neutral value
(``number_or``).
"""

import math
from typing import Any, Mapping, Optional, Sequence


def get_number(record: Optional[Mapping[str, Any]], key: str) -> Optional[float]:
    """
    Extract a numeric value from a record.

    Args:
        record: Mapping to search (one statement period, one ratio snapshot)
        key: Field name

    Returns:
        Value as float, or None if missing, NaN or non-numeric
    """
    if not record:
        return None

    value = record.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(value):
        return None
    return value


def number_or(record: Optional[Mapping[str, Any]], key: str, default: float) -> float:
    """Numeric value of ``key``, or ``default`` when it is absent."""
    value = get_number(record, key)
    return default if value is None else value


def period(series: Sequence[Mapping[str, Any]], index: int) -> Mapping[str, Any]:
    """Period ``index`` of a most-recent-first statement series, or {}."""
    if isinstance(series, (str, Mapping)) or not isinstance(series, Sequence):
        return {}
    if index < len(series) and isinstance(series[index], Mapping):
        return series[index]
    return {}


def growth(current: float, prior: float) -> Optional[float]:
    """Fractional growth from ``prior`` to ``current``; None unless prior > 0."""
    if prior <= 0:
        return None
    return (current - prior) / prior
