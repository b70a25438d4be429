"""Reliability and availability KPIs for a query window.

Definitions (all durations clipped to the window):
    Ao   = 100 * T_operating / T_total
    At   = 100 * T_operating / (T_total - T_weather - T_maintenance)
    MTBF = T_operating (h) / failures
    MTTR = T_repair (h) / failures
    R    = 100 * (1 - overlap(repair, weather) / T_weather)

Ao counts weather and maintenance as unavailable. At removes them from the
denominator so it reflects technical performance only. R penalises weather
downtime that also coincides with a technical fault.
"""

import logging
import math

from ..config import MetricsSettings
from ..models import DateRange, Metrics, PowerCurvePoint, TimeInterval, TurbineEvent
from .builder import build_maintenance_intervals, build_power_intervals, build_repair_signal_intervals
from .intervals import clipped_duration, overlap_duration, union

logger = logging.getLogger(__name__)


def count_failures(
    operating: list[TimeInterval],
    repair: list[TimeInterval],
    window: DateRange,
    settings: MetricsSettings,
) -> int:
    """Count repair spans starting in the window while or right after the turbine was running.

    A repair span counts if it begins inside an operating interval (repair
    signals often open before the next power sample shows the drop) or within
    the failure link threshold after one ends. Repair sets are already merged,
    so adjacent fragments of one failure are only counted once.
    """
    threshold = settings.failure_link_threshold

    failures = 0
    for interval in repair:
        if not (window.start <= interval.start < window.end):
            continue
        if any(
            running.start <= interval.start <= running.end + threshold for running in operating
        ):
            failures += 1
    return failures


def _percentage(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return round(max(0.0, min(100.0, value)), 2)


def _hours(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return round(max(0.0, value), 2)


def calculate_metrics(
    events: list[TurbineEvent],
    samples: list[PowerCurvePoint],
    window: DateRange | None,
    settings: MetricsSettings | None = None,
) -> Metrics:
    """Compute Ao, At, MTBF, MTTR and R for the window.

    Returns Metrics.zero() when there is not enough data: no complete window,
    fewer than two power samples, or an empty or inverted window.
    """
    settings = settings or MetricsSettings()

    if window is None or not window.is_complete:
        logger.debug("Insufficient data: no query window")
        return Metrics.zero()

    usable_samples = [p for p in samples if p.timestamp is not None]
    if len(usable_samples) < 2:
        logger.debug("Insufficient data: %d power samples", len(usable_samples))
        return Metrics.zero()

    t_total = (window.end - window.start).total_seconds()
    if t_total <= 0:
        logger.debug("Insufficient data: window %s -> %s is empty", window.start, window.end)
        return Metrics.zero()

    # Build from all data; clipping happens when durations are summed
    power_intervals = build_power_intervals(
        usable_samples,
        events,
        cut_in_speed=settings.cut_in_speed,
        cut_out_speed=settings.cut_out_speed,
        fault_keyword=settings.fault_keyword,
    )
    operating = power_intervals.operating
    weather = power_intervals.weather_outage
    repair = union(power_intervals.under_repair, build_repair_signal_intervals(events, settings))
    maintenance = build_maintenance_intervals(events, settings)

    t_operating = clipped_duration(operating, window)
    t_maintenance = clipped_duration(maintenance, window)
    t_weather = clipped_duration(weather, window)
    t_repair = clipped_duration(repair, window)

    ao = 100 * t_operating / t_total

    at_denominator = t_total - t_weather - t_maintenance
    at = 100 * t_operating / at_denominator if at_denominator > 0 else 0.0

    failures = count_failures(operating, repair, window, settings)
    mtbf = (t_operating / 3600) / failures if failures > 0 else 0.0
    mttr = (t_repair / 3600) / failures if failures > 0 else 0.0

    if t_weather > 0:
        reliability = 100 * (1 - overlap_duration(repair, weather, window) / t_weather)
    else:
        reliability = 100.0

    logger.debug(
        "Window %s -> %s: operating=%.0fs weather=%.0fs maintenance=%.0fs repair=%.0fs failures=%d",
        window.start,
        window.end,
        t_operating,
        t_weather,
        t_maintenance,
        t_repair,
        failures,
    )

    return Metrics(
        operational_availability=_percentage(ao),
        technical_availability=_percentage(at),
        mtbf=_hours(mtbf),
        mttr=_hours(mttr),
        reliability_r=_percentage(reliability),
    )
