"""Fault distribution and critical log filtering."""

from collections import Counter, defaultdict

from ..models import DateRange, TurbineEvent
from .builder import normalize_status, pair_on_off
from .intervals import clipped_duration, union

NO_FAULT_CATEGORY = "No Fault"

# Event fields that can be used as log filters
FILTERABLE_FIELDS = ("status", "name", "category", "event_type", "ccu_event")


def _in_range(event: TurbineEvent, date_range: DateRange | None) -> bool:
    if event.timestamp is None:
        return False
    if date_range is None or not date_range.is_complete:
        return True
    return date_range.contains(event.timestamp)


def fault_category_counts(events: list[TurbineEvent], date_range: DateRange | None = None) -> dict[str, int]:
    """Count fault occurrences (ON records) per category."""
    counts = Counter(
        e.category
        for e in events
        if normalize_status(e.status) == "ON"
        and e.category
        and e.category != NO_FAULT_CATEGORY
        and _in_range(e, date_range)
    )
    return dict(counts.most_common())


def fault_category_downtimes(events: list[TurbineEvent], date_range: DateRange) -> dict[str, float]:
    """Hours spent in each fault category within the range.

    ON/OFF records are paired per event name, then the spans of each category
    are unioned so simultaneous faults of one category count once. Categories
    with no in-range downtime are omitted.
    """
    if not date_range.is_complete:
        return {}

    by_category: dict[str, dict[str, list[TurbineEvent]]] = defaultdict(lambda: defaultdict(list))
    for event in events:
        if event.timestamp is None or not event.category or event.category == NO_FAULT_CATEGORY:
            continue
        by_category[event.category][event.name].append(event)

    downtimes = {}
    for category, by_name in by_category.items():
        spans = union(*(pair_on_off(name_events) for name_events in by_name.values()))
        hours = clipped_duration(spans, date_range) / 3600
        if hours > 0:
            downtimes[category] = round(hours, 2)

    return dict(sorted(downtimes.items(), key=lambda item: item[1], reverse=True))


def critical_events(
    events: list[TurbineEvent],
    date_range: DateRange | None,
    filters: dict[str, list[str]] | None = None,
) -> list[TurbineEvent]:
    """Events inside the range that match every active filter.

    filters maps an event field to its allowed values. Fields with an empty
    list are ignored; an event with no value for an active field is excluded.
    """
    if date_range is None or not date_range.is_complete:
        return []

    active = {key: set(values) for key, values in (filters or {}).items() if values}
    for key in active:
        if key not in FILTERABLE_FIELDS:
            raise ValueError(f"Unknown log filter field: {key}")

    result = []
    for event in events:
        if not _in_range(event, date_range):
            continue
        matches = True
        for key, allowed in active.items():
            value = getattr(event, key)
            if value is None or str(value) not in allowed:
                matches = False
                break
        if matches:
            result.append(event)
    return result
