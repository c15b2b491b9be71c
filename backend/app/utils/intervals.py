"""
Half-open minute interval arithmetic used by availability and scheduling.

Intervals are ``(start, end)`` tuples of minutes since midnight with
``start < end``; two intervals overlap when ``a.start < b.end and b.start < a.end``.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

Interval = Tuple[int, int]


def overlaps(a: Interval, b: Interval) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def coalesce(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping or touching intervals; result is sorted."""
    merged: List[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def subtract(base: Iterable[Interval], removals: Iterable[Interval]) -> List[Interval]:
    """
    Remove every removal interval from the base intervals.

    A removal strictly inside a base interval splits it into two pieces.
    """
    result = coalesce(base)
    for r_start, r_end in coalesce(removals):
        pieces: List[Interval] = []
        for start, end in result:
            if not overlaps((start, end), (r_start, r_end)):
                pieces.append((start, end))
                continue
            if start < r_start:
                pieces.append((start, r_start))
            if r_end < end:
                pieces.append((r_end, end))
        result = pieces
    return result


def slice_starts(interval: Interval, duration: int, step: int) -> List[int]:
    """Start minutes at ``step`` increments whose [start, start+duration) fits inside interval."""
    start, end = interval
    return list(range(start, end - duration + 1, step)) if end - start >= duration else []
