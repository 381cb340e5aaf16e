import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterator

# 2025-01-15T10:20:30.123456789Z / 2025-01-15T10:20:30+02:00 / 2025-01-15 10:20:30
_ISO_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})?$"
)

# Anything above this is treated as epoch milliseconds.
_EPOCH_MS_THRESHOLD = 100_000_000_000

# Shorter digit strings (e.g. "20250115") are not epochs.
_MIN_EPOCH_DIGITS = 10


def day_key(instant: datetime) -> str:
    """Local calendar day of ``instant`` as ``YYYY-MM-DD``."""
    if instant.tzinfo is not None:
        instant = instant.astimezone()
    return f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"


def parse_day_key(key: str) -> date | None:
    try:
        return datetime.strptime(key, "%Y-%m-%d").date()
    except ValueError:
        return None


def shift_day_key(key: str, days: int) -> str:
    parsed = parse_day_key(key)
    if parsed is None:
        return key
    return (parsed + timedelta(days=days)).isoformat()


def is_in_range(key: str, since: str, until: str) -> bool:
    return since <= key <= until


def iter_day_keys(since: str, until: str) -> Iterator[str]:
    start = parse_day_key(since)
    end = parse_day_key(until)
    if start is None or end is None:
        return
    current = start
    while current <= end:
        yield current.isoformat()
        current += timedelta(days=1)


def _parse_iso(text: str) -> datetime | None:
    match = _ISO_RE.match(text)
    if not match:
        return None
    day, clock, fraction, offset = match.groups()
    normalized = f"{day}T{clock}"
    if fraction:
        normalized += "." + fraction[:6].ljust(6, "0")
    if offset:
        if offset == "Z":
            offset = "+00:00"
        elif ":" not in offset:
            offset = f"{offset[:3]}:{offset[3:]}"
        normalized += offset
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _parse_epoch(value: float) -> datetime | None:
    if value <= 0:
        return None
    if value > _EPOCH_MS_THRESHOLD:
        value = value / 1000
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def day_key_from_timestamp(value) -> str | None:
    """Resolve an ISO-8601 string or a Unix epoch (s or ms) to a local day key."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = _parse_epoch(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit() and len(text) >= _MIN_EPOCH_DIGITS:
            parsed = _parse_epoch(int(text))
        else:
            parsed = _parse_iso(text)
    else:
        return None
    if parsed is None:
        return None
    return day_key(parsed)


@dataclass(frozen=True)
class DayRange:
    since_key: str
    until_key: str
    scan_since_key: str
    scan_until_key: str

    @classmethod
    def from_instants(cls, since: datetime, until: datetime) -> "DayRange":
        since_key = day_key(since)
        until_key = day_key(until)
        return cls(
            since_key=since_key,
            until_key=until_key,
            scan_since_key=shift_day_key(since_key, -1),
            scan_until_key=shift_day_key(until_key, 1),
        )

    def in_scan_range(self, key: str) -> bool:
        return is_in_range(key, self.scan_since_key, self.scan_until_key)

    def in_report_range(self, key: str) -> bool:
        return is_in_range(key, self.since_key, self.until_key)
