from datetime import datetime, timezone

from turbine.analysis.summary import (
    format_duration,
    format_metrics_text,
    format_weekly_text,
    get_metrics_summary,
)
from turbine.collectors.csv_export import ParsedData
from turbine.models import CommentSelection, PowerCurvePoint, TurbineEvent, WeeklyMetrics
from turbine.session import DashboardState


def utc(hour, minute=0, day=1):
    return datetime(2024, 6, day, hour, minute, tzinfo=timezone.utc)


def make_state():
    state = DashboardState()
    state.load(
        ParsedData(
            events=[
                TurbineEvent(utc(1, 30), "ON", "Pitch fault", category="Pitch", event_type="Fault"),
                TurbineEvent(utc(2), "OFF", "Pitch fault", category="Pitch", event_type="Fault"),
            ],
            power=[
                PowerCurvePoint(utc(0), power=1200, wind_speed=8),
                PowerCurvePoint(utc(1), power=0, wind_speed=8),
                PowerCurvePoint(utc(2), power=900, wind_speed=8),
            ],
        )
    )
    return state


def test_format_duration():
    assert format_duration(utc(0), utc(0, 45)) == "45 minutes"
    assert format_duration(utc(0), utc(3, 15)) == "3 hours 15 minutes"
    assert format_duration(utc(0, day=1), utc(0, day=9)) == "8 days"
    assert format_duration(utc(0, day=1), utc(6, day=9)) == "8 days 6 hours"


def test_get_metrics_summary():
    state = make_state()
    state.add_comment("Pitch motor reset", selection=CommentSelection(utc(1, 30)))

    summary = get_metrics_summary(state)

    assert summary["period"]["start"] == "2024-06-01T00:00:00+00:00"
    assert summary["period"]["duration"] == "2 hours 0 minutes"
    assert summary["metrics"]["operational_availability"] == 50
    assert summary["metrics"]["mttr"] == 1.0
    assert summary["data"] == {
        "events": 2,
        "events_in_range": 2,
        "power_samples": 3,
        "power_samples_in_range": 3,
    }
    assert summary["faults"]["counts"] == {"Pitch": 1}
    assert summary["faults"]["downtime_hours"] == {"Pitch": 0.5}
    assert summary["comments"][0]["text"] == "Pitch motor reset"
    assert summary["comments"][0]["end"] is None


def test_format_metrics_text():
    state = make_state()
    state.add_comment("Pitch motor reset")

    text = format_metrics_text(get_metrics_summary(state))

    assert "Operational (Ao): 50.00%" in text
    assert "MTTR: 1.00 h" in text
    assert "Pitch: 0.5 h" in text
    assert "Pitch motor reset" in text


def test_format_metrics_text_no_data():
    assert format_metrics_text(get_metrics_summary(DashboardState())) == "No data loaded"


def test_format_weekly_text():
    weekly = WeeklyMetrics(labels=["Jun 3"], ao_data=[95.5], at_data=[99.0], reliability_data=[100.0])

    text = format_weekly_text(weekly)

    assert text.splitlines()[1].split() == ["Jun", "3", "95.50", "99.00", "100.00"]
    assert format_weekly_text(WeeklyMetrics()) == "No weeks with log data in range"
