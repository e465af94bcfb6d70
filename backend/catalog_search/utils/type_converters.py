"""
Type converters — shared value conversion utilities.
Version: 1.0.0
"""
import math
import re
from typing import Any, Optional

from catalog_search.core.constants.ingestion import TRUTHY_VALUES, URL_SCHEMES

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def to_float(value: Any) -> Optional[float]:
    """Convert value to a finite float, returning None if invalid."""
    if value is None or isinstance(value, bool):
        return None
    try:
        val = float(value)
    except (ValueError, TypeError):
        return None
    return val if math.isfinite(val) else None


def to_int(value: Any) -> Optional[int]:
    """
    Convert value to int, returning None if invalid.

    Strings are read up to the first non-digit, so "12 units" and "12.0"
    both give 12.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def to_bool(value: Any) -> bool:
    """'true' / '1' / 'yes' (any case) are True; everything else is False."""
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def non_negative(value: Optional[float]) -> float:
    if value is None or value < 0:
        return 0.0
    return float(value)


def is_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(URL_SCHEMES)
