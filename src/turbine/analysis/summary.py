"""Generate readable summaries of turbine KPIs."""

from datetime import datetime

from ..models import WeeklyMetrics
from ..session import DashboardState
from .faults import fault_category_counts, fault_category_downtimes


def format_duration(start: datetime, end: datetime) -> str:
    """Format the span between two instants, e.g. '3 hours 15 minutes'.

    Spans of a week or more are given in days and hours.
    """
    total_minutes = int((end - start).total_seconds() // 60)
    hours = total_minutes // 60
    days = hours // 24

    if days >= 7:
        remaining_hours = hours - days * 24
        if remaining_hours > 0:
            return f"{days} days {remaining_hours} hours"
        return f"{days} days"

    if hours > 0:
        return f"{hours} hours {total_minutes - hours * 60} minutes"
    return f"{total_minutes} minutes"


def get_metrics_summary(state: DashboardState) -> dict:
    """Generate a summary of the session's current window."""
    date_range = state.date_range
    metrics = state.metrics()
    filtered_events = state.filtered_events()

    return {
        "period": {
            "start": date_range.start.isoformat() if date_range.start else None,
            "end": date_range.end.isoformat() if date_range.end else None,
            "duration": (
                format_duration(date_range.start, date_range.end) if date_range.is_complete else None
            ),
        },
        "metrics": metrics.as_dict(),
        "data": {
            "events": len(state.events),
            "events_in_range": len(filtered_events),
            "power_samples": len(state.power_curve),
            "power_samples_in_range": len(state.filtered_power_curve()),
        },
        "faults": {
            "counts": fault_category_counts(state.events, date_range),
            "downtime_hours": fault_category_downtimes(state.events, date_range),
        },
        "comments": [
            {
                "id": c.id,
                "text": c.text,
                "start": c.selection.start.isoformat() if c.selection else None,
                "end": c.selection.end.isoformat() if c.selection and c.selection.end else None,
                "username": c.username,
            }
            for c in state.comments_in_range()
        ],
    }


def format_metrics_text(summary: dict) -> str:
    """Format a metrics summary as human-readable text."""
    period = summary["period"]
    metrics = summary["metrics"]

    if period["start"] is None:
        return "No data loaded"

    lines = [
        f"Turbine KPIs: {period['start']} to {period['end']}",
        f"({period['duration']})",
        "",
        "Availability:",
        f"  - Operational (Ao): {metrics['operational_availability']:.2f}%",
        f"  - Technical (At): {metrics['technical_availability']:.2f}%",
        "",
        "Reliability:",
        f"  - MTBF: {metrics['mtbf']:.2f} h",
        f"  - MTTR: {metrics['mttr']:.2f} h",
        f"  - Reliability (R): {metrics['reliability_r']:.2f}%",
    ]

    downtimes = summary["faults"]["downtime_hours"]
    if downtimes:
        lines.extend(["", "Fault downtime:"])
        for category, hours in downtimes.items():
            lines.append(f"  - {category}: {hours} h")

    if summary["comments"]:
        lines.extend(["", "Comments:"])
        for comment in summary["comments"]:
            lines.append(f"  - {comment['text']}")

    return "\n".join(lines)


def format_weekly_text(weekly: WeeklyMetrics) -> str:
    """Format weekly KPI series as aligned text rows."""
    if not weekly.labels:
        return "No weeks with log data in range"

    lines = [f"{'Week':<8} {'Ao %':>7} {'At %':>7} {'R %':>7}"]
    for label, ao, at, r in zip(weekly.labels, weekly.ao_data, weekly.at_data, weekly.reliability_data):
        lines.append(f"{label:<8} {ao:>7.2f} {at:>7.2f} {r:>7.2f}")
    return "\n".join(lines)
