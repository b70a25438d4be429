"""Interval algebra over half-open TimeIntervals.

Every function here is pure: inputs are never mutated and merged results are
new TimeInterval objects. Durations are returned in seconds.
"""

from datetime import timedelta
from typing import Iterable

from ..models import DateRange, TimeInterval


def clip(interval: TimeInterval, window: DateRange) -> TimeInterval | None:
    """Return the in-window portion of an interval, or None if it lies outside."""
    start = max(interval.start, window.start)
    end = min(interval.end, window.end)
    if start >= end:
        return None
    return TimeInterval(start, end)


def clipped_duration(intervals: Iterable[TimeInterval], window: DateRange) -> float:
    """Sum the durations of intervals after clipping each one to the window."""
    total = 0.0
    for interval in intervals:
        clipped = clip(interval, window)
        if clipped is not None:
            total += clipped.duration_seconds
    return total


def overlap_duration(
    intervals_a: Iterable[TimeInterval],
    intervals_b: Iterable[TimeInterval],
    window: DateRange,
) -> float:
    """Total length of a ∩ b ∩ window over every pair (a, b).

    Full cross product, O(len(a) * len(b)).
    """
    list_b = list(intervals_b)
    total = 0.0
    for a in intervals_a:
        for b in list_b:
            start = max(a.start, b.start, window.start)
            end = min(a.end, b.end, window.end)
            if start < end:
                total += (end - start).total_seconds()
    return total


def merge_with_gap(intervals: Iterable[TimeInterval], max_gap: timedelta) -> list[TimeInterval]:
    """Merge intervals whose gap to the running span is <= max_gap."""
    ordered = sorted(intervals, key=lambda i: i.start)
    if not ordered:
        return []

    merged = []
    current_start, current_end = ordered[0].start, ordered[0].end
    for interval in ordered[1:]:
        if interval.start - current_end <= max_gap:
            current_end = max(current_end, interval.end)
        else:
            merged.append(TimeInterval(current_start, current_end))
            current_start, current_end = interval.start, interval.end
    merged.append(TimeInterval(current_start, current_end))
    return merged


def union(*interval_lists: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Flatten, sort by start and coalesce touching or overlapping intervals.

    [0, 10) and [10, 20) merge into [0, 20); [0, 10) and [11, 20) stay apart.
    """
    flat = [interval for intervals in interval_lists for interval in intervals]
    return merge_with_gap(flat, timedelta(0))

