"""Common types and helpers shared across models."""

from datetime import UTC, datetime, timedelta, timezone
from typing import TypeAlias

IntervalKey: TypeAlias = tuple[datetime, datetime]

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a ``YYYY-MM-DDThh:mm:ssZ`` string into an aware UTC datetime."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return None


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def local_zone(utc_offset_minutes: int) -> timezone:
    return timezone(timedelta(minutes=utc_offset_minutes))


def to_local(value: datetime, utc_offset_minutes: int) -> datetime:
    """Convert an aware instant to wall-clock time at a fixed UTC offset."""
    return value.astimezone(local_zone(utc_offset_minutes))
