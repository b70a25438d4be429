"""In-memory dashboard state.

Holds the loaded data, the selected query window, log filters and analyst
comments for one session. Metrics are recomputed from this state on demand;
the analysis functions themselves receive everything as arguments.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .analysis.faults import critical_events
from .analysis.metrics import calculate_metrics
from .analysis.weekly import calculate_weekly_metrics
from .collectors.csv_export import ParsedData, aggregate_logs_to_power_curve
from .config import MetricsSettings
from .models import (
    Comment,
    CommentSelection,
    DateRange,
    Metrics,
    PowerCurvePoint,
    TurbineEvent,
    WeeklyMetrics,
)

logger = logging.getLogger(__name__)


@dataclass
class DashboardState:
    """Session state for one analyst."""

    settings: MetricsSettings = field(default_factory=MetricsSettings)
    events: list[TurbineEvent] = field(default_factory=list)
    power_curve: list[PowerCurvePoint] = field(default_factory=list)
    date_range: DateRange = field(default_factory=DateRange)
    log_filters: dict[str, list[str]] = field(default_factory=dict)
    temp_log_filters: dict[str, list[str]] = field(default_factory=dict)
    comments: list[Comment] = field(default_factory=list)
    new_comment_selection: CommentSelection | None = None

    def load(self, data: ParsedData) -> None:
        """Replace the session data and reset the window to the data extent.

        Comments, filters and any pending selection are cleared. When only
        event logs were loaded, a power curve is derived from their readings.
        """
        self.events = list(data.events)
        self.power_curve = list(data.power)
        if not self.power_curve:
            self.power_curve = aggregate_logs_to_power_curve(self.events)
            if self.power_curve:
                logger.debug("Derived %d power samples from event logs", len(self.power_curve))

        timestamps = [p.timestamp for p in self.power_curve if p.timestamp is not None]
        timestamps += [e.timestamp for e in self.events if e.timestamp is not None]
        if timestamps:
            self.date_range = DateRange(min(timestamps), max(timestamps))
        else:
            self.date_range = DateRange()

        self.comments = []
        self.new_comment_selection = None
        self.log_filters = {}
        self.temp_log_filters = {}

    def set_date_range(self, start: datetime, end: datetime) -> None:
        if end < start:
            raise ValueError(f"Range end {end} is before start {start}")
        self.date_range = DateRange(start, end)

    # Filters are edited on a temporary copy, then applied or discarded
    def set_temp_log_filters(self, filters: dict[str, list[str]]) -> None:
        self.temp_log_filters = {key: list(values) for key, values in filters.items()}

    def apply_log_filters(self) -> None:
        self.log_filters = {key: list(values) for key, values in self.temp_log_filters.items()}

    def reset_log_filters(self) -> None:
        self.log_filters = {}
        self.temp_log_filters = {}

    def filtered_events(self) -> list[TurbineEvent]:
        """Events in the current window that pass the applied filters."""
        return critical_events(self.events, self.date_range, self.log_filters)

    def filtered_power_curve(self) -> list[PowerCurvePoint]:
        """Power samples in the current window."""
        if not self.date_range.is_complete:
            return []
        return [
            p for p in self.power_curve if p.timestamp is not None and self.date_range.contains(p.timestamp)
        ]

    def add_comment(
        self,
        text: str,
        selection: CommentSelection | None = None,
        username: str | None = None,
    ) -> Comment | None:
        """Add an annotation. Blank text is ignored.

        Uses the pending selection when none is given, then clears it.
        """
        if not text.strip():
            return None

        comment = Comment(
            id=max((c.id for c in self.comments), default=0) + 1,
            text=text.strip(),
            selection=selection if selection is not None else self.new_comment_selection,
            created_at=datetime.now(timezone.utc),
            username=username,
        )
        self.comments.append(comment)
        self.new_comment_selection = None
        return comment

    def comments_in_range(self) -> list[Comment]:
        """Comments whose selection overlaps the current window.

        Comments without a selection always apply.
        """
        if not self.date_range.is_complete:
            return list(self.comments)

        result = []
        for comment in self.comments:
            selection = comment.selection
            if selection is None:
                result.append(comment)
                continue
            end = selection.end or selection.start
            if selection.start <= self.date_range.end and end >= self.date_range.start:
                result.append(comment)
        return result

    def metrics(self) -> Metrics:
        return calculate_metrics(self.events, self.power_curve, self.date_range, self.settings)

    def weekly_metrics(self) -> WeeklyMetrics:
        return calculate_weekly_metrics(self.events, self.power_curve, self.date_range, self.settings)
