"""Metric threshold configuration.

Settings are read from config/turbine.yaml. A specific file can be selected
with the TURBINE_CONFIG environment variable (also read from a .env file).
When no file is found the built-in defaults are used.
"""

import os
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

CUT_IN_SPEED = 3.0  # m/s - below this the turbine cannot generate
CUT_OUT_SPEED = 25.0  # m/s - above this the turbine shuts down for protection
FAILURE_LINK_MINUTES = 10  # operating -> repair gap still counted as one failure
SIGNAL_MAX_DURATION_HOURS = 48  # longer ON/OFF pairs are assumed to be missing an OFF
SIGNAL_MERGE_GAP_MINUTES = 60  # brief reconnections inside one outage
MAINTENANCE_EVENTS = ("155",)
REPAIR_EVENTS = ("156",)
FAULT_KEYWORD = "fault"


class ConfigError(Exception):
    """Raised when the configuration file holds invalid values."""
    pass


@dataclass(frozen=True)
class MetricsSettings:
    """Thresholds used by the interval builder and metrics engine."""

    cut_in_speed: float = CUT_IN_SPEED
    cut_out_speed: float = CUT_OUT_SPEED
    failure_link_minutes: float = FAILURE_LINK_MINUTES
    signal_max_duration_hours: float = SIGNAL_MAX_DURATION_HOURS
    signal_merge_gap_minutes: float = SIGNAL_MERGE_GAP_MINUTES
    maintenance_events: tuple[str, ...] = field(default=MAINTENANCE_EVENTS)
    repair_events: tuple[str, ...] = field(default=REPAIR_EVENTS)
    fault_keyword: str = FAULT_KEYWORD

    @property
    def failure_link_threshold(self) -> timedelta:
        return timedelta(minutes=self.failure_link_minutes)

    @property
    def signal_max_duration(self) -> timedelta:
        return timedelta(hours=self.signal_max_duration_hours)

    @property
    def signal_merge_gap(self) -> timedelta:
        return timedelta(minutes=self.signal_merge_gap_minutes)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["maintenance_events"] = list(self.maintenance_events)
        data["repair_events"] = list(self.repair_events)
        return data


def get_config_path() -> Path | None:
    """Find the turbine.yaml config file, or None if there isn't one."""
    env_path = os.environ.get("TURBINE_CONFIG")
    if env_path:
        return Path(env_path)

    candidates = [
        Path.cwd() / "config" / "turbine.yaml",
        Path.home() / ".config" / "turbine" / "turbine.yaml",
    ]
    for path in candidates:
        if path.exists():
            return path
    return None


def validate_settings(settings: MetricsSettings) -> MetricsSettings:
    """Check value ranges. Returns the settings unchanged if they are valid."""
    if settings.cut_in_speed < 0:
        raise ConfigError(f"cut_in_speed must be >= 0, got {settings.cut_in_speed}")
    if settings.cut_in_speed >= settings.cut_out_speed:
        raise ConfigError(
            f"cut_in_speed ({settings.cut_in_speed}) must be below "
            f"cut_out_speed ({settings.cut_out_speed})"
        )
    for name in ("failure_link_minutes", "signal_max_duration_hours", "signal_merge_gap_minutes"):
        if getattr(settings, name) < 0:
            raise ConfigError(f"{name} must be >= 0, got {getattr(settings, name)}")
    return settings


def _event_codes(value, name: str) -> tuple[str, ...]:
    """Event codes from a YAML list, or a single code given as a scalar."""
    if isinstance(value, (str, int)):
        return (str(value),)
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"{name} must be a list of event codes, got {value!r}")
    return tuple(str(code) for code in value)


def load_settings(config_path: Path | None = None) -> MetricsSettings:
    """Load metric settings from YAML, falling back to defaults."""
    path = config_path or get_config_path()
    if path is None:
        return MetricsSettings()

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    section = data.get("metrics") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'metrics' section in {path} must be a mapping")

    defaults = MetricsSettings()
    try:
        settings = MetricsSettings(
            cut_in_speed=float(section.get("cut_in_speed", defaults.cut_in_speed)),
            cut_out_speed=float(section.get("cut_out_speed", defaults.cut_out_speed)),
            failure_link_minutes=float(
                section.get("failure_link_minutes", defaults.failure_link_minutes)
            ),
            signal_max_duration_hours=float(
                section.get("signal_max_duration_hours", defaults.signal_max_duration_hours)
            ),
            signal_merge_gap_minutes=float(
                section.get("signal_merge_gap_minutes", defaults.signal_merge_gap_minutes)
            ),
            maintenance_events=_event_codes(
                section.get("maintenance_events", defaults.maintenance_events), "maintenance_events"
            ),
            repair_events=_event_codes(
                section.get("repair_events", defaults.repair_events), "repair_events"
            ),
            fault_keyword=str(section.get("fault_keyword", defaults.fault_keyword)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {path}: {e}")

    return validate_settings(settings)
