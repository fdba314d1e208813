from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, TypeVar

from .inputs import Period

P = TypeVar("P", bound=Period)


def resolve_period(periods: Sequence[P], year: int) -> Optional[P]:
    """Return the first period in list order that covers ``year``.

    Overlaps are not an error: earlier entries shadow later ones.
    """
    for period in periods:
        if period.covers(year):
            return period
    return None


def _ranges_overlap(a: Period, b: Period) -> bool:
    a_end = a.end_year if a.end_year != 0 else float("inf")
    b_end = b.end_year if b.end_year != 0 else float("inf")
    return a.start_year <= b_end and b.start_year <= a_end


def overlapping_periods(periods: Sequence[Period]) -> List[Tuple[int, int]]:
    """Index pairs (i, j), i < j, whose year ranges intersect."""
    pairs = []
    for i in range(len(periods)):
        for j in range(i + 1, len(periods)):
            if _ranges_overlap(periods[i], periods[j]):
                pairs.append((i, j))
    return pairs
