from datetime import datetime, timedelta

from turbine.analysis.builder import (
    build_maintenance_intervals,
    build_power_intervals,
    build_signal_intervals,
    is_fault_event,
    matches_signal,
    pair_on_off,
)
from turbine.models import PowerCurvePoint, TimeInterval, TurbineEvent


def t(hour, minute=0, day=1):
    return datetime(2024, 1, day, hour, minute)


def test_build_power_intervals_classification():
    """Each adjacent sample pair is classified by the first sample's state."""
    samples = [
        PowerCurvePoint(t(0, 0), power=100, wind_speed=8),  # operating
        PowerCurvePoint(t(0, 10), power=0, wind_speed=8),  # down with fault -> repair
        PowerCurvePoint(t(0, 20), power=0, wind_speed=1),  # below cut-in -> weather
        PowerCurvePoint(t(0, 30), power=0, wind_speed=10),  # down, no cause -> unclassified
        PowerCurvePoint(t(0, 40), power=50, wind_speed=8),  # closes the last interval only
    ]
    events = [TurbineEvent(t(0, 15), "ON", "Pitch fault", event_type="Fault")]

    result = build_power_intervals(samples, events)

    assert result.operating == [TimeInterval(t(0, 0), t(0, 10))]
    assert result.under_repair == [TimeInterval(t(0, 10), t(0, 20))]
    assert result.weather_outage == [TimeInterval(t(0, 20), t(0, 30))]
    assert result.unclassified_downtime == [TimeInterval(t(0, 30), t(0, 40))]


def test_weather_and_repair_are_not_exclusive():
    """High wind with a fault is both a weather outage and under repair."""
    samples = [
        PowerCurvePoint(t(1), power=0, wind_speed=30),
        PowerCurvePoint(t(2), power=0, wind_speed=8),
    ]
    events = [TurbineEvent(t(1, 30), "ON", "Yaw", event_type="Safety Critical Fault")]

    result = build_power_intervals(samples, events)

    assert result.weather_outage == [TimeInterval(t(1), t(2))]
    assert result.under_repair == [TimeInterval(t(1), t(2))]
    assert result.unclassified_downtime == []


def test_fault_at_interval_end_belongs_to_next_interval():
    samples = [
        PowerCurvePoint(t(1), power=0, wind_speed=8),
        PowerCurvePoint(t(2), power=0, wind_speed=8),
        PowerCurvePoint(t(3), power=0, wind_speed=8),
    ]
    events = [TurbineEvent(t(2), "ON", "Converter", event_type="fault")]

    result = build_power_intervals(samples, events)

    assert result.under_repair == [TimeInterval(t(2), t(3))]
    assert result.unclassified_downtime == [TimeInterval(t(1), t(2))]


def test_adjacent_operating_intervals_merge():
    samples = [PowerCurvePoint(t(h), power=500, wind_speed=9) for h in range(4)]
    result = build_power_intervals(samples, [])
    assert result.operating == [TimeInterval(t(0), t(3))]


def test_cut_out_speed():
    samples = [
        PowerCurvePoint(t(1), power=0, wind_speed=26),
        PowerCurvePoint(t(2), power=0, wind_speed=25),
        PowerCurvePoint(t(3), power=0, wind_speed=25),
    ]
    result = build_power_intervals(samples, [])
    assert result.weather_outage == [TimeInterval(t(1), t(2))]
    assert result.unclassified_downtime == [TimeInterval(t(2), t(3))]


def test_custom_cut_in_speed():
    samples = [
        PowerCurvePoint(t(1), power=0, wind_speed=4),
        PowerCurvePoint(t(2), power=0, wind_speed=4),
    ]
    assert build_power_intervals(samples, []).weather_outage == []
    assert build_power_intervals(samples, [], cut_in_speed=5).weather_outage == [TimeInterval(t(1), t(2))]


def test_empty_and_null_samples():
    assert build_power_intervals([], []).operating == []

    samples = [
        PowerCurvePoint(None, power=100, wind_speed=8),
        PowerCurvePoint(t(1), power=100, wind_speed=8),
    ]
    result = build_power_intervals(samples, [])
    assert result.operating == []


def test_unsorted_samples_are_ordered():
    samples = [
        PowerCurvePoint(t(2), power=0, wind_speed=1),
        PowerCurvePoint(t(1), power=100, wind_speed=8),
        PowerCurvePoint(t(3), power=100, wind_speed=8),
    ]
    result = build_power_intervals(samples, [])
    assert result.operating == [TimeInterval(t(1), t(2))]
    assert result.weather_outage == [TimeInterval(t(2), t(3))]


def test_is_fault_event():
    assert is_fault_event(TurbineEvent(t(1), "ON", "x", event_type="FAULT"))
    assert is_fault_event(TurbineEvent(t(1), "ON", "x", event_type="Safety Critical Fault"))
    assert not is_fault_event(TurbineEvent(t(1), "ON", "x", event_type="Warning", category="Fault"))


def test_pair_on_off_ignores_orphans():
    events = [
        TurbineEvent(t(1), "ON", "155"),
        TurbineEvent(t(1, 30), "ON", "155"),  # already open
        TurbineEvent(t(2), "OFF", "155"),
        TurbineEvent(t(2, 30), "OFF", "155"),  # nothing open
        TurbineEvent(t(3), "ON", "155"),  # never closed
    ]
    assert pair_on_off(events) == [TimeInterval(t(1), t(2))]


def test_pair_on_off_normalizes_status():
    events = [TurbineEvent(t(1), " on ", "155"), TurbineEvent(t(2), "Off", "155")]
    assert pair_on_off(events) == [TimeInterval(t(1), t(2))]


def test_build_signal_intervals_pairs_per_name():
    events = [
        TurbineEvent(t(0), "ON", "A"),
        TurbineEvent(t(0, 30), "ON", "B"),
        TurbineEvent(t(1), "OFF", "A"),
        TurbineEvent(t(1, 30), "OFF", "B"),
    ]
    assert build_signal_intervals(events) == [TimeInterval(t(0), t(1, 30))]


def test_build_signal_intervals_drops_overlong_pairs():
    """An ON matched to an OFF days later is treated as a missing OFF."""
    events = [
        TurbineEvent(t(0, day=1), "ON", "156"),
        TurbineEvent(t(0, day=4), "OFF", "156"),
        TurbineEvent(t(6, day=4), "ON", "156"),
        TurbineEvent(t(7, day=4), "OFF", "156"),
    ]
    assert build_signal_intervals(events) == [TimeInterval(t(6, day=4), t(7, day=4))]


def test_build_signal_intervals_merges_small_gaps():
    events = [
        TurbineEvent(t(0), "ON", "156"),
        TurbineEvent(t(1), "OFF", "156"),
        TurbineEvent(t(1, 45), "ON", "156"),  # 45 min gap -> same outage
        TurbineEvent(t(2), "OFF", "156"),
        TurbineEvent(t(3, 30), "ON", "156"),  # 90 min gap -> new span
        TurbineEvent(t(4), "OFF", "156"),
    ]
    assert build_signal_intervals(events) == [
        TimeInterval(t(0), t(2)),
        TimeInterval(t(3, 30), t(4)),
    ]


def test_build_signal_intervals_custom_limits():
    events = [
        TurbineEvent(t(0), "ON", "156"),
        TurbineEvent(t(3), "OFF", "156"),
    ]
    assert build_signal_intervals(events, max_duration=timedelta(hours=2)) == []


def test_matches_signal():
    assert matches_signal(TurbineEvent(t(1), "ON", "155"), ["155"])
    assert matches_signal(TurbineEvent(t(1), "ON", "Event 155"), ["155"])
    assert not matches_signal(TurbineEvent(t(1), "ON", "156"), ["155"])


def test_build_maintenance_intervals():
    events = [
        TurbineEvent(t(1), "ON", "155"),
        TurbineEvent(t(1, 10), "ON", "156"),
        TurbineEvent(t(2), "OFF", "155"),
        TurbineEvent(t(2, 10), "OFF", "156"),
    ]
    assert build_maintenance_intervals(events) == [TimeInterval(t(1), t(2))]
