from __future__ import annotations

from typing import Dict, Iterable, List

from app.domain.models import CategorySlice, InstrumentType, Position


def compute_category_breakdown(positions: Iterable[Position]) -> List[CategorySlice]:
    """
    Sum asset value by instrument type for the allocation pie.

    Liabilities are left out, and so is any position whose value is not
    strictly positive: a pie cannot draw negative or empty slices.
    Slices come out in the order their type was first seen.
    """
    out: Dict[InstrumentType, float] = {}
    for p in positions:
        if p.is_liability or p.value <= 0:
            continue
        out[p.type] = out.get(p.type, 0.0) + p.value
    return [CategorySlice(name=k, value=v) for k, v in out.items()]
