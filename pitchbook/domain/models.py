"""Domain models for pitch schedules, closures, bookings and slots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Optional


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Bookings in these states keep their time range off the market.
HOLDING_STATUSES: tuple[BookingStatus, ...] = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
)


@dataclass(frozen=True)
class OperatingWindow:
    """Recurring opening hours of a pitch for one day of the week.

    `weekday` counts from Sunday (0) to Saturday (6). The optional validity
    range is inclusive on both ends.
    """

    weekday: int
    start_time: time
    end_time: time
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None

    def covers(self, target: date) -> bool:
        if self.valid_from is not None and target < self.valid_from:
            return False
        if self.valid_until is not None and target > self.valid_until:
            return False
        return True


@dataclass(frozen=True)
class TimeInterval:
    """Half-open `[start, end)` span of absolute time."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class ClosureInterval(TimeInterval):
    """Blackout during which the pitch cannot be booked."""


@dataclass(frozen=True)
class BookedInterval(TimeInterval):
    """Range held by a pending or confirmed booking."""


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    available: bool
    price: int

    def to_api_dict(self) -> dict[str, str | bool | int]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "available": self.available,
            "price": self.price,
        }


@dataclass(frozen=True)
class Pitch:
    pitch_id: int
    name: str
    price_per_hour: int
    is_active: bool
    timezone: str
