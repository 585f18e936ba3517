"""Booking lifecycle: creation with conflict checks and status changes."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from pitchbook.domain.constraints import validate_interval
from pitchbook.domain.models import HOLDING_STATUSES, BookingStatus
from pitchbook.repository.data_repository import BookingRecord, DataRepository
from pitchbook.services.availability_service import intervals_overlap, utc_now
from pitchbook.services.pitch_service import PitchNotFoundError
from pitchbook.utils.config import Settings, get_settings
from pitchbook.utils.logger import get_logger
from pitchbook.utils.timeutils import ensure_utc


logger = get_logger(__name__)


class BookingError(Exception):
    """Base exception for booking workflow failures."""


class BookingValidationError(BookingError):
    """Raised when booking input is invalid."""


class PitchUnavailableError(BookingError):
    """Raised when the pitch is not accepting bookings."""


class BookingConflictError(BookingError):
    """Raised when the requested range is already held or closed."""


class BookingNotFoundError(BookingError):
    """Raised when a booking id does not exist."""


class BookingService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_now

    def get_booking(self, booking_id: int) -> BookingRecord:
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {booking_id} was not found")
        return booking

    def create_booking(
        self,
        *,
        pitch_id: int,
        start: datetime,
        end: datetime,
        organizer_name: str,
        organizer_email: str,
        notes: Optional[str] = None,
    ) -> BookingRecord:
        """Create a PENDING booking once the range is free of holds and closures."""
        pitch = self._repository.get_pitch(pitch_id)
        if pitch is None:
            raise PitchNotFoundError(f"Pitch {pitch_id} was not found")
        if not pitch.is_active:
            raise PitchUnavailableError("This pitch is not available for booking")

        start_utc, end_utc = ensure_utc(start), ensure_utc(end)
        try:
            validate_interval(start_utc, end_utc)
        except ValueError as exc:
            raise BookingValidationError(str(exc)) from exc
        if not organizer_name.strip() or not organizer_email.strip():
            raise BookingValidationError("organizer name and email are required")

        held = self._repository.list_holding_bookings(pitch_id, start_utc, end_utc)
        if any(intervals_overlap(start_utc, end_utc, b.start, b.end) for b in held):
            raise BookingConflictError("This time slot is already booked")
        closures = self._repository.list_closures(pitch_id, start_utc, end_utc)
        if any(intervals_overlap(start_utc, end_utc, c.start, c.end) for c in closures):
            raise BookingConflictError("This pitch is closed during the requested time")

        duration_hours = (end_utc - start_utc).total_seconds() / 3600
        total_amount_pence = round(pitch.price_per_hour * duration_hours)

        booking_id = self._repository.create_booking(
            pitch_id=pitch_id,
            start=start_utc,
            end=end_utc,
            organizer_name=organizer_name.strip(),
            organizer_email=organizer_email.strip(),
            notes=notes or None,
            total_amount_pence=total_amount_pence,
            currency=self._settings.currency,
        )
        logger.info(
            "Created booking %s for pitch %s from %s to %s",
            booking_id,
            pitch_id,
            start_utc.isoformat(),
            end_utc.isoformat(),
        )
        return self.get_booking(booking_id)

    def list_bookings(
        self,
        *,
        pitch_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
        start_from: Optional[datetime] = None,
        end_until: Optional[datetime] = None,
    ) -> list[BookingRecord]:
        return self._repository.list_bookings(
            pitch_id=pitch_id,
            statuses=[status] if status is not None else None,
            range_start=ensure_utc(start_from) if start_from is not None else None,
            range_end=ensure_utc(end_until) if end_until is not None else None,
        )

    def update_status(
        self,
        booking_id: int,
        status: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> BookingRecord:
        booking = self.get_booking(booking_id)

        # Reinstating a released booking must not double-book its range.
        if status in HOLDING_STATUSES and booking.status not in HOLDING_STATUSES:
            held = self._repository.list_holding_bookings(
                booking.pitch_id,
                booking.start,
                booking.end,
            )
            if any(other.booking_id != booking_id for other in held):
                raise BookingConflictError("This time slot is already booked")

        now = self._clock()
        self._repository.update_booking_status(
            booking_id,
            status,
            confirmed_at=now if status is BookingStatus.CONFIRMED else None,
            cancelled_at=now if status is BookingStatus.CANCELLED else None,
            cancellation_reason=(
                cancellation_reason if status is BookingStatus.CANCELLED else None
            ),
            clear_cancellation=status in HOLDING_STATUSES,
        )
        logger.info(
            "Booking %s moved from %s to %s",
            booking_id,
            booking.status.value,
            status.value,
        )
        return self.get_booking(booking_id)
