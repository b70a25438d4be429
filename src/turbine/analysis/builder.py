"""Interval construction from power-curve samples and event logs."""

import bisect
import logging
import re
from collections import defaultdict
from datetime import timedelta
from typing import Iterable

from ..config import (
    CUT_IN_SPEED,
    CUT_OUT_SPEED,
    FAULT_KEYWORD,
    SIGNAL_MAX_DURATION_HOURS,
    SIGNAL_MERGE_GAP_MINUTES,
    MetricsSettings,
)
from ..models import PowerCurvePoint, PowerIntervals, TimeInterval, TurbineEvent
from .intervals import merge_with_gap, union

logger = logging.getLogger(__name__)


def is_fault_event(event: TurbineEvent, keyword: str = FAULT_KEYWORD) -> bool:
    """True if the event type marks a fault (case-insensitive substring)."""
    return keyword.lower() in (event.event_type or "").lower()


def normalize_status(status: str | None) -> str:
    """Trimmed, upper-case ON/OFF status."""
    return (status or "").strip().upper()


def event_code(name: str) -> str:
    """Digits of an event name, e.g. 'Event 155' -> '155'."""
    return re.sub(r"[^0-9]", "", name or "")


def matches_signal(event: TurbineEvent, codes: Iterable[str]) -> bool:
    """True if the event name is one of the codes, or its digits are."""
    name = (event.name or "").strip()
    wanted = set(codes)
    return name in wanted or event_code(name) in wanted


def build_power_intervals(
    samples: list[PowerCurvePoint],
    events: list[TurbineEvent],
    cut_in_speed: float = CUT_IN_SPEED,
    cut_out_speed: float = CUT_OUT_SPEED,
    fault_keyword: str = FAULT_KEYWORD,
) -> PowerIntervals:
    """Classify every adjacent pair of power samples into typed intervals.

    Interval construction: the state observed at sample i is taken to hold for
    the whole gap [t_i, t_{i+1}). Values are never interpolated between
    samples, and the last sample only closes the previous interval.

    Per pair (p1, p2):
    1. p1.power > 0 -> operating.
    2. Otherwise it is downtime, and independently:
       - wind outside [cut_in, cut_out] -> weather outage
       - a fault event timestamped inside [p1.t, p2.t) -> under repair
       - neither -> unclassified downtime
    A downtime interval can be both weather outage and under repair.
    """
    points = sorted((p for p in samples if p.timestamp is not None), key=lambda p: p.timestamp)
    if len(points) < 2:
        return PowerIntervals()

    fault_times = sorted(
        e.timestamp for e in events if e.timestamp is not None and is_fault_event(e, fault_keyword)
    )

    def has_fault(start, end) -> bool:
        i = bisect.bisect_left(fault_times, start)
        return i < len(fault_times) and fault_times[i] < end

    operating = []
    weather = []
    repair = []
    unclassified = []

    for p1, p2 in zip(points, points[1:]):
        interval = TimeInterval(p1.timestamp, p2.timestamp)

        if p1.power > 0:
            operating.append(interval)
            continue

        is_weather = p1.wind_speed < cut_in_speed or p1.wind_speed > cut_out_speed
        is_fault = has_fault(p1.timestamp, p2.timestamp)

        if is_weather:
            weather.append(interval)
        if is_fault:
            repair.append(interval)
        if not is_weather and not is_fault:
            unclassified.append(interval)

    result = PowerIntervals(
        operating=union(operating),
        weather_outage=union(weather),
        under_repair=union(repair),
        unclassified_downtime=union(unclassified),
    )
    logger.debug(
        "Built %d operating, %d weather, %d repair, %d unclassified intervals from %d samples",
        len(result.operating),
        len(result.weather_outage),
        len(result.under_repair),
        len(result.unclassified_downtime),
        len(points),
    )
    return result


def pair_on_off(events: Iterable[TurbineEvent]) -> list[TimeInterval]:
    """Pair ON -> OFF transitions in timestamp order.

    An ON opens an interval only if none is open; an OFF closes the open one.
    Orphaned OFFs and an ON still open at the end of the data yield nothing.
    """
    ordered = sorted((e for e in events if e.timestamp is not None), key=lambda e: e.timestamp)

    intervals = []
    open_event = None
    for event in ordered:
        status = normalize_status(event.status)
        if status == "ON" and open_event is None:
            open_event = event
        elif status == "OFF" and open_event is not None:
            intervals.append(TimeInterval(open_event.timestamp, event.timestamp))
            open_event = None
    return intervals


def build_signal_intervals(
    events: Iterable[TurbineEvent],
    max_duration: timedelta = timedelta(hours=SIGNAL_MAX_DURATION_HOURS),
    merge_gap: timedelta = timedelta(minutes=SIGNAL_MERGE_GAP_MINUTES),
) -> list[TimeInterval]:
    """Build intervals for named binary signals (repair, maintenance, ...).

    1. Pair ON -> OFF separately for each event name.
    2. Drop pairs longer than max_duration; these come from a missing OFF
       being matched to a much later one.
    3. Merge spans separated by gaps <= merge_gap so brief reconnections
       during one outage count once.
    """
    by_name: dict[str, list[TurbineEvent]] = defaultdict(list)
    for event in events:
        by_name[event.name].append(event)

    kept = []
    for name, name_events in by_name.items():
        for interval in pair_on_off(name_events):
            if interval.end - interval.start > max_duration:
                logger.warning(
                    "Discarding %s interval %s -> %s longer than %s",
                    name,
                    interval.start,
                    interval.end,
                    max_duration,
                )
                continue
            kept.append(interval)

    return merge_with_gap(kept, merge_gap)


def build_maintenance_intervals(
    events: Iterable[TurbineEvent], settings: MetricsSettings | None = None
) -> list[TimeInterval]:
    """Planned-maintenance spans from the configured maintenance signals."""
    settings = settings or MetricsSettings()
    return build_signal_intervals(
        (e for e in events if matches_signal(e, settings.maintenance_events)),
        max_duration=settings.signal_max_duration,
        merge_gap=settings.signal_merge_gap,
    )


def build_repair_signal_intervals(
    events: Iterable[TurbineEvent], settings: MetricsSettings | None = None
) -> list[TimeInterval]:
    """Repair spans from the configured repair signals."""
    settings = settings or MetricsSettings()
    return build_signal_intervals(
        (e for e in events if matches_signal(e, settings.repair_events)),
        max_duration=settings.signal_max_duration,
        merge_gap=settings.signal_merge_gap,
    )
