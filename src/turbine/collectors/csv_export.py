"""Turbine CSV export importer.

Handles the two export types produced by the turbine controller:

Power curve:  TimeStamp, Actual Wind Speed (m/s), Power (kW), Ref Power (kW)
Event log:    Timestamp, Status, Name, Description, Category, Event Type, CCU Event
              (optionally Power (kW) and Wind Speed (m/s))

Timestamps are 'YYYY-MM-DD HH:MM:SS' in UTC. Numbers may contain thousands
separators. Files can be read from disk or downloaded once over HTTP.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx

from ..models import PowerCurvePoint, TurbineEvent

logger = logging.getLogger(__name__)

POWER_CURVE_HEADERS = ["TimeStamp", "Actual Wind Speed (m/s)", "Power (kW)", "Ref Power (kW)"]
EVENT_LOG_HEADERS = ["Timestamp", "Status", "Name", "Description", "Category", "Event Type", "CCU Event"]

BUCKET_MINUTES = 10


class CsvImportError(Exception):
    """Raised when exports cannot be read or contain no usable data."""
    pass


@dataclass
class ParsedFile:
    """Result of parsing one export."""

    file_type: str  # 'power', 'log' or 'unknown'
    events: list[TurbineEvent] = field(default_factory=list)
    power: list[PowerCurvePoint] = field(default_factory=list)


@dataclass
class ParsedData:
    """Merged, timestamp-sorted contents of several exports."""

    events: list[TurbineEvent] = field(default_factory=list)
    power: list[PowerCurvePoint] = field(default_factory=list)


def identify_file_type(headers: list[str]) -> str:
    """Identify an export from its header row."""
    if all(h in headers for h in POWER_CURVE_HEADERS):
        return "power"
    if all(h in headers for h in EVENT_LOG_HEADERS):
        return "log"
    return "unknown"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a 'YYYY-MM-DD HH:MM:SS' UTC timestamp. Returns None if invalid."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace(" ", "T"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_number(value: str | None) -> float | None:
    """Parse a number that may contain thousands separators."""
    if value is None:
        return None
    cleaned = str(value).replace(",", "").strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _parse_power_rows(rows: list[dict]) -> list[PowerCurvePoint]:
    points = []
    for row in rows:
        timestamp = parse_timestamp(row.get("TimeStamp"))
        if timestamp is None:
            continue
        points.append(
            PowerCurvePoint(
                timestamp=timestamp,
                wind_speed=parse_number(row.get("Actual Wind Speed (m/s)")) or 0.0,
                power=parse_number(row.get("Power (kW)")) or 0.0,
                ref_power=parse_number(row.get("Ref Power (kW)")) or 0.0,
            )
        )
    return points


def _parse_log_rows(rows: list[dict]) -> list[TurbineEvent]:
    events = []
    for row in rows:
        timestamp = parse_timestamp(row.get("Timestamp"))
        if timestamp is None:
            continue
        events.append(
            TurbineEvent(
                timestamp=timestamp,
                status=(row.get("Status") or "").strip(),
                name=(row.get("Name") or "").strip(),
                description=row.get("Description") or "",
                category=(row.get("Category") or "").strip(),
                event_type=(row.get("Event Type") or "").strip(),
                ccu_event=row.get("CCU Event") or "",
                power=parse_number(row.get("Power (kW)")),
                wind_speed=parse_number(row.get("Wind Speed (m/s)")),
            )
        )
    return events


def parse_csv_text(csv_data: str) -> ParsedFile:
    """Parse the text of one export, detecting its type from the headers."""
    reader = csv.DictReader(io.StringIO(csv_data))
    if reader.fieldnames is None:
        return ParsedFile("unknown")
    reader.fieldnames = [name.strip() for name in reader.fieldnames]

    file_type = identify_file_type(reader.fieldnames)
    if file_type == "unknown":
        return ParsedFile("unknown")

    # Skip blank lines
    rows = [row for row in reader if any((v or "").strip() for v in row.values() if isinstance(v, str))]

    if file_type == "power":
        return ParsedFile("power", power=_parse_power_rows(rows))
    return ParsedFile("log", events=_parse_log_rows(rows))


def parse_csv_file(csv_path: Path) -> ParsedFile:
    """Parse an export file from disk."""
    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as f:
            return parse_csv_text(f.read())
    except OSError as e:
        raise CsvImportError(f"Could not read {csv_path}: {e}")


def fetch_csv_text(url: str, timeout: float = 60.0, client: httpx.Client | None = None) -> str:
    """Download an export over HTTP.

    Args:
        url: Location of the CSV export
        timeout: Request timeout in seconds
        client: Optional preconfigured client (a new one is created otherwise)

    Returns:
        Raw CSV string with headers
    """
    try:
        if client is not None:
            response = client.get(url, timeout=timeout)
            response.raise_for_status()
            return response.text
        with httpx.Client(timeout=timeout) as new_client:
            response = new_client.get(url)
            response.raise_for_status()
            return response.text
    except httpx.HTTPStatusError as e:
        raise CsvImportError(f"HTTP error fetching {url}: {e.response.status_code}")
    except httpx.HTTPError as e:
        raise CsvImportError(f"Network error fetching {url}: {e}")


def merge_parsed(parsed_files: list[ParsedFile]) -> ParsedData:
    """Merge parsed exports and sort both series by timestamp."""
    data = ParsedData()
    for parsed in parsed_files:
        data.events.extend(parsed.events)
        data.power.extend(parsed.power)

    data.events.sort(key=lambda e: e.timestamp)
    data.power.sort(key=lambda p: p.timestamp)
    return data


def load_files(
    csv_paths: list[Path],
    urls: list[str] | tuple[str, ...] = (),
    client: httpx.Client | None = None,
) -> ParsedData:
    """Load any mix of power-curve and event-log exports.

    Unrecognized files are skipped with a warning. Raises CsvImportError when
    no input is given or none of them held usable rows.
    """
    if not csv_paths and not urls:
        raise CsvImportError("No files selected for processing.")

    parsed_files = []
    for path in csv_paths:
        parsed = parse_csv_file(Path(path))
        if parsed.file_type == "unknown":
            logger.warning("Unrecognized CSV format, skipping %s", path)
        parsed_files.append(parsed)

    for url in urls:
        parsed = parse_csv_text(fetch_csv_text(url, client=client))
        if parsed.file_type == "unknown":
            logger.warning("Unrecognized CSV format, skipping %s", url)
        parsed_files.append(parsed)

    data = merge_parsed(parsed_files)
    if not data.events and not data.power:
        raise CsvImportError(
            "Could not recognize file formats or files are empty. "
            "Please provide a valid Power Curve or Event Log file."
        )

    logger.debug("Loaded %d events and %d power samples", len(data.events), len(data.power))
    return data


def aggregate_logs_to_power_curve(
    events: list[TurbineEvent], bucket_minutes: int = BUCKET_MINUTES
) -> list[PowerCurvePoint]:
    """Average event-log power and wind readings into fixed buckets.

    Only events carrying both power and wind speed contribute. Reference power
    is not present in event logs and is left at 0. bucket_minutes must divide
    an hour evenly.
    """
    if not events:
        return []

    bucket_seconds = bucket_minutes * 60
    buckets: dict[datetime, list[float]] = {}

    for event in events:
        if event.timestamp is None or event.power is None or event.wind_speed is None:
            continue

        # Round down to the bucket boundary
        ts = event.timestamp
        offset = (ts.minute * 60 + ts.second) % bucket_seconds
        bucket_start = ts.replace(microsecond=0) - timedelta(seconds=offset)

        # [power_sum, wind_sum, count]
        if bucket_start not in buckets:
            buckets[bucket_start] = [0.0, 0.0, 0]
        buckets[bucket_start][0] += event.power
        buckets[bucket_start][1] += event.wind_speed
        buckets[bucket_start][2] += 1

    return [
        PowerCurvePoint(
            timestamp=bucket_start,
            power=power_sum / count,
            wind_speed=wind_sum / count,
            ref_power=0.0,
        )
        for bucket_start, (power_sum, wind_sum, count) in sorted(buckets.items())
    ]
