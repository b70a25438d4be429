"""Weekly KPI trend aggregation."""

import logging
from datetime import datetime, timedelta
from typing import Iterator

from ..config import MetricsSettings
from ..models import DateRange, PowerCurvePoint, TurbineEvent, WeeklyMetrics
from .metrics import calculate_metrics

logger = logging.getLogger(__name__)


def start_of_week(dt: datetime) -> datetime:
    """Midnight on the Monday of dt's ISO week (keeps tzinfo)."""
    midnight = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=dt.weekday())


def end_of_week(dt: datetime) -> datetime:
    """Last microsecond of the Sunday of dt's ISO week."""
    return start_of_week(dt) + timedelta(days=7) - timedelta(microseconds=1)


def iter_weeks(date_range: DateRange) -> Iterator[tuple[datetime, datetime]]:
    """Yield (week_start, week_end) for every ISO week overlapping the range."""
    week_start = start_of_week(date_range.start)
    while week_start <= date_range.end:
        yield week_start, end_of_week(week_start)
        week_start += timedelta(days=7)


def format_week_label(dt: datetime) -> str:
    """Format a label like 'Jan 5'."""
    return f"{dt:%b} {dt.day}"


def calculate_weekly_metrics(
    events: list[TurbineEvent],
    samples: list[PowerCurvePoint],
    date_range: DateRange,
    settings: MetricsSettings | None = None,
) -> WeeklyMetrics:
    """Run the metrics engine once per calendar week of the range.

    Each week is clipped to the range. Weeks with no log entries are left out
    rather than reported as zero, so the series can be shorter than the number
    of weeks spanned.
    """
    weekly = WeeklyMetrics()
    if not date_range.is_complete or date_range.end < date_range.start:
        return weekly

    for week_start, week_end in iter_weeks(date_range):
        effective = DateRange(max(date_range.start, week_start), min(date_range.end, week_end))
        if effective.end <= effective.start:
            # Range ends exactly at a week boundary
            continue

        week_events = [
            e for e in events if e.timestamp is not None and effective.contains(e.timestamp)
        ]
        if not week_events:
            logger.debug("Skipping week of %s: no log entries", week_start.date())
            continue

        metrics = calculate_metrics(week_events, samples, effective, settings)
        weekly.labels.append(format_week_label(effective.start))
        weekly.ao_data.append(metrics.operational_availability)
        weekly.at_data.append(metrics.technical_availability)
        weekly.reliability_data.append(metrics.reliability_r)

    return weekly
