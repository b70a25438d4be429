"""Data models for turbine events, power-curve samples and KPIs."""

from dataclasses import asdict, dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class TimeInterval:
    """A half-open time span [start, end)."""

    start: datetime
    end: datetime

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.end - self.start).total_seconds())


@dataclass
class TurbineEvent:
    """A single row from a turbine event log."""

    timestamp: datetime | None
    status: str
    name: str
    event_type: str = ""
    description: str = ""
    category: str = ""
    ccu_event: str = ""
    power: float | None = None  # kW, only present on some exports
    wind_speed: float | None = None  # m/s


@dataclass
class PowerCurvePoint:
    """A periodic power-curve sample (typically 10-minute cadence)."""

    timestamp: datetime | None
    power: float  # kW
    wind_speed: float  # m/s
    ref_power: float = 0.0  # kW


@dataclass
class DateRange:
    """A query window. Either end may be missing before data is loaded."""

    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def contains(self, ts: datetime) -> bool:
        """Inclusive membership test used for filtering rows."""
        if not self.is_complete:
            return False
        return self.start <= ts <= self.end


@dataclass(frozen=True)
class Metrics:
    """Reliability and availability KPIs for one window."""

    operational_availability: float
    technical_availability: float
    mtbf: float  # hours
    mttr: float  # hours
    reliability_r: float

    @classmethod
    def zero(cls) -> "Metrics":
        """The insufficient-data result."""
        return cls(0.0, 0.0, 0.0, 0.0, 0.0)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PowerIntervals:
    """Intervals classified from adjacent power-curve samples."""

    operating: list[TimeInterval] = field(default_factory=list)
    weather_outage: list[TimeInterval] = field(default_factory=list)
    under_repair: list[TimeInterval] = field(default_factory=list)
    unclassified_downtime: list[TimeInterval] = field(default_factory=list)


@dataclass
class WeeklyMetrics:
    """Per-week KPI series, one entry per week that had log data."""

    labels: list[str] = field(default_factory=list)
    ao_data: list[float] = field(default_factory=list)
    at_data: list[float] = field(default_factory=list)
    reliability_data: list[float] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class CommentSelection:
    """A point (end is None) or range selected on the time axis."""

    start: datetime
    end: datetime | None = None


@dataclass
class Comment:
    """An analyst annotation."""

    id: int
    text: str
    selection: CommentSelection | None
    created_at: datetime
    username: str | None = None
