from __future__ import annotations

import math
from typing import Any, Optional

# Markers the sheet may leave around amounts ("1,200円", "¥3,000", "$12.5").
_STRIP_CHARS = (",", "¥", "円", "$", "£", "€")


def to_number(value: Any) -> Optional[float]:
    """
    Coerce an arbitrary cell value to a finite float.

    Returns None for anything that is not a usable number (None, "", "abc",
    NaN, +/-inf, booleans, containers). Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            out = float(value)
        except OverflowError:
            return None
        return out if math.isfinite(out) else None
    if isinstance(value, str):
        cleaned = value.strip()
        for ch in _STRIP_CHARS:
            cleaned = cleaned.replace(ch, "")
        if not cleaned:
            return None
        try:
            out = float(cleaned)
        except ValueError:
            return None
        return out if math.isfinite(out) else None
    return None


def number_or_zero(value: Any) -> float:
    out = to_number(value)
    return 0.0 if out is None else out


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Drop results of arithmetic that overflowed (inf) or went NaN."""
    if value is None or not math.isfinite(value):
        return None
    return value
