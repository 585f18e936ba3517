"""Domain-level validation rules for schedules and time intervals."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pitchbook.domain.models import OperatingWindow


def validate_operating_window(window: OperatingWindow) -> None:
    if not 0 <= window.weekday <= 6:
        raise ValueError("weekday must be between 0 (Sunday) and 6 (Saturday)")
    if window.end_time <= window.start_time:
        raise ValueError("end_time must be later than start_time")
    if (
        window.valid_from is not None
        and window.valid_until is not None
        and window.valid_until < window.valid_from
    ):
        raise ValueError("valid_until must not be earlier than valid_from")


def windows_conflict(first: OperatingWindow, second: OperatingWindow) -> bool:
    """True when two windows could both apply to the same date.

    Opening hours are not compared: at most one window may apply per date.
    """
    if first.weekday != second.weekday:
        return False
    if first.valid_until is not None and second.valid_from is not None:
        if first.valid_until < second.valid_from:
            return False
    if second.valid_until is not None and first.valid_from is not None:
        if second.valid_until < first.valid_from:
            return False
    return True


def validate_schedule(windows: list[OperatingWindow]) -> None:
    for window in windows:
        validate_operating_window(window)
    for index, window in enumerate(windows):
        for other in windows[index + 1:]:
            if windows_conflict(window, other):
                raise ValueError(
                    f"more than one window applies on weekday {window.weekday}"
                )


def validate_interval(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValueError("end must be later than start")


def validate_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown timezone: {name}") from exc
