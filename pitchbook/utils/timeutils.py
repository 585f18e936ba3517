"""Timestamp helpers shared by the repository and service layers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


def ensure_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> str:
    # Fixed width UTC strings keep lexicographic order equal to time order.
    return ensure_utc(value).strftime("%Y-%m-%dT%H:%M:%S+00:00")


def from_storage(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value.strip()[:5], "%H:%M").time()


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def day_of_week(target: date) -> int:
    """Weekday number counted from Sunday = 0."""
    return (target.weekday() + 1) % 7


def local_day_bounds(target: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC bounds of the venue-local calendar day `[00:00, next 00:00)`."""
    start = datetime.combine(target, time.min, tzinfo=tz)
    end = datetime.combine(target + timedelta(days=1), time.min, tzinfo=tz)
    return ensure_utc(start), ensure_utc(end)
