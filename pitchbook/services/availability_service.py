"""Availability slot generation for a pitch on a calendar date."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from pitchbook.domain.models import (
    BookedInterval,
    ClosureInterval,
    OperatingWindow,
    Slot,
    TimeInterval,
)
from pitchbook.repository.data_repository import DataRepository
from pitchbook.services.pitch_service import PitchNotFoundError
from pitchbook.utils.config import Settings, get_settings
from pitchbook.utils.logger import get_logger
from pitchbook.utils.timeutils import day_of_week, ensure_utc, local_day_bounds


logger = get_logger(__name__)

SLOT_DURATION = timedelta(hours=1)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """Half-open overlap test; intervals that only touch do not overlap."""
    return first_start < second_end and first_end > second_start


def _overlaps_any(
    slot_start: datetime,
    slot_end: datetime,
    intervals: Iterable[TimeInterval],
) -> bool:
    return any(
        intervals_overlap(
            slot_start,
            slot_end,
            ensure_utc(interval.start),
            ensure_utc(interval.end),
        )
        for interval in intervals
    )


def select_operating_window(
    windows: Iterable[OperatingWindow],
    target_date: date,
) -> Optional[OperatingWindow]:
    """Pick the window that applies to `target_date`, if any.

    A window applies when its weekday matches and its validity range covers
    the date. When several apply, the one with the latest `valid_from` wins.
    """
    weekday = day_of_week(target_date)
    candidates = [
        window
        for window in windows
        if window.weekday == weekday and window.covers(target_date)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda window: window.valid_from or date.min)


def generate_slots(
    target_date: date,
    window: Optional[OperatingWindow],
    closures: Sequence[ClosureInterval],
    booked: Sequence[BookedInterval],
    price: int,
    now: datetime,
    tz: ZoneInfo | timezone = timezone.utc,
) -> list[Slot]:
    """Build the one-hour slots of `window` on `target_date`.

    Window times are wall-clock times in `tz`; slots are stepped in absolute
    time and returned as UTC instants. A slot is available unless it has
    already started at `now` (so every ended slot is out too), or overlaps
    a booking or a closure.
    """
    if window is None:
        return []

    day_start = ensure_utc(datetime.combine(target_date, window.start_time, tzinfo=tz))
    day_end = ensure_utc(datetime.combine(target_date, window.end_time, tzinfo=tz))
    if day_end <= day_start:
        return []

    reference_now = ensure_utc(now)
    slots: list[Slot] = []
    cursor = day_start
    while cursor + SLOT_DURATION <= day_end:
        slot_end = cursor + SLOT_DURATION
        has_started = cursor < reference_now
        is_booked = _overlaps_any(cursor, slot_end, booked)
        is_closed = _overlaps_any(cursor, slot_end, closures)
        slots.append(
            Slot(
                start=cursor,
                end=slot_end,
                available=not (has_started or is_booked or is_closed),
                price=price,
            )
        )
        cursor = slot_end
    return slots


class AvailabilityService:
    """Loads a pitch's schedule data and runs the slot generator."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_now

    def get_day_availability(self, pitch_id: int, target_date: date) -> list[Slot]:
        pitch = self._repository.get_pitch(pitch_id)
        if pitch is None:
            raise PitchNotFoundError(f"Pitch {pitch_id} was not found")
        if not pitch.is_active:
            return []

        windows = self._repository.list_schedules(
            pitch_id,
            weekday=day_of_week(target_date),
        )
        window = select_operating_window(windows, target_date)
        if window is None:
            logger.debug("No schedule for pitch %s on %s", pitch_id, target_date)
            return []

        tz = ZoneInfo(pitch.timezone)
        range_start, range_end = local_day_bounds(target_date, tz)
        closures = [
            record.to_interval()
            for record in self._repository.list_closures(pitch_id, range_start, range_end)
        ]
        booked = [
            record.to_interval()
            for record in self._repository.list_holding_bookings(
                pitch_id,
                range_start,
                range_end,
            )
        ]

        slots = generate_slots(
            target_date=target_date,
            window=window,
            closures=closures,
            booked=booked,
            price=pitch.price_per_hour,
            now=self._clock(),
            tz=tz,
        )
        logger.debug(
            "Generated %s slots for pitch %s on %s (%s available)",
            len(slots),
            pitch_id,
            target_date,
            sum(1 for slot in slots if slot.available),
        )
        return slots
