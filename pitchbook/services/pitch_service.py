"""Pitch, weekly schedule and closure management."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from pitchbook.domain.constraints import (
    validate_interval,
    validate_schedule,
    validate_timezone,
)
from pitchbook.domain.models import OperatingWindow, Pitch
from pitchbook.repository.data_repository import ClosureRecord, DataRepository
from pitchbook.utils.config import Settings, get_settings
from pitchbook.utils.logger import get_logger
from pitchbook.utils.timeutils import ensure_utc


logger = get_logger(__name__)


class PitchError(Exception):
    """Base exception for pitch management failures."""


class PitchNotFoundError(PitchError):
    """Raised when a pitch id does not exist in persisted state."""


class PitchValidationError(PitchError):
    """Raised when pitch attributes are invalid."""


class ScheduleValidationError(PitchError):
    """Raised when a weekly schedule cannot be stored as given."""


class ClosureValidationError(PitchError):
    """Raised when closure input is invalid."""


class ClosureNotFoundError(PitchError):
    """Raised when a closure id does not exist."""


class PitchService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def get_pitch(self, pitch_id: int) -> Pitch:
        pitch = self._repository.get_pitch(pitch_id)
        if pitch is None:
            raise PitchNotFoundError(f"Pitch {pitch_id} was not found")
        return pitch

    def create_pitch(
        self,
        *,
        name: str,
        price_per_hour: int,
        timezone_name: Optional[str] = None,
        is_active: bool = True,
    ) -> Pitch:
        if not name.strip():
            raise PitchValidationError("name must not be empty")
        if price_per_hour < 0:
            raise PitchValidationError("price_per_hour must be >= 0")
        resolved_timezone = timezone_name or self._settings.default_timezone
        try:
            validate_timezone(resolved_timezone)
        except ValueError as exc:
            raise PitchValidationError(str(exc)) from exc

        pitch_id = self._repository.create_pitch(
            name=name.strip(),
            price_per_hour=price_per_hour,
            timezone_name=resolved_timezone,
            is_active=is_active,
        )
        logger.info("Created pitch %s (%s)", pitch_id, name)
        return self.get_pitch(pitch_id)

    def update_pitch(
        self,
        pitch_id: int,
        *,
        name: Optional[str] = None,
        price_per_hour: Optional[int] = None,
        timezone_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Pitch:
        """Apply a partial update; fields left as None keep their value."""
        current = self.get_pitch(pitch_id)
        if name is not None and not name.strip():
            raise PitchValidationError("name must not be empty")
        if price_per_hour is not None and price_per_hour < 0:
            raise PitchValidationError("price_per_hour must be >= 0")
        if timezone_name is not None:
            try:
                validate_timezone(timezone_name)
            except ValueError as exc:
                raise PitchValidationError(str(exc)) from exc

        updated = replace(
            current,
            name=name.strip() if name is not None else current.name,
            price_per_hour=(
                price_per_hour if price_per_hour is not None else current.price_per_hour
            ),
            timezone=timezone_name or current.timezone,
            is_active=is_active if is_active is not None else current.is_active,
        )
        self._repository.update_pitch(updated)
        logger.info("Updated pitch %s", pitch_id)
        return self.get_pitch(pitch_id)

    def deactivate_pitch(self, pitch_id: int) -> Pitch:
        """Soft-delete: the row and its history stay, availability goes empty."""
        self.get_pitch(pitch_id)
        self._repository.set_pitch_active(pitch_id, False)
        logger.info("Deactivated pitch %s", pitch_id)
        return self.get_pitch(pitch_id)

    def list_pitches(self, active_only: bool = True) -> list[Pitch]:
        return self._repository.list_pitches(active_only=active_only)

    def list_schedules(self, pitch_id: int) -> list[OperatingWindow]:
        self.get_pitch(pitch_id)
        return self._repository.list_schedules(pitch_id)

    def replace_schedules(
        self,
        pitch_id: int,
        windows: list[OperatingWindow],
    ) -> list[OperatingWindow]:
        """Validate and store the full weekly schedule of a pitch."""
        self.get_pitch(pitch_id)
        try:
            validate_schedule(windows)
        except ValueError as exc:
            raise ScheduleValidationError(str(exc)) from exc

        self._repository.replace_schedules(pitch_id, windows)
        logger.info("Replaced schedule of pitch %s with %s windows", pitch_id, len(windows))
        return self._repository.list_schedules(pitch_id)

    def list_closures(self, pitch_id: int) -> list[ClosureRecord]:
        self.get_pitch(pitch_id)
        return self._repository.list_closures(pitch_id)

    def create_closure(
        self,
        pitch_id: int,
        *,
        title: str,
        start: datetime,
        end: datetime,
        description: Optional[str] = None,
    ) -> ClosureRecord:
        self.get_pitch(pitch_id)
        if not title.strip():
            raise ClosureValidationError("title must not be empty")
        start_utc, end_utc = ensure_utc(start), ensure_utc(end)
        try:
            validate_interval(start_utc, end_utc)
        except ValueError as exc:
            raise ClosureValidationError(str(exc)) from exc

        closure_id = self._repository.create_closure(
            pitch_id=pitch_id,
            title=title.strip(),
            description=description or None,
            start=start_utc,
            end=end_utc,
        )
        logger.info(
            "Closed pitch %s from %s to %s (closure %s)",
            pitch_id,
            start_utc.isoformat(),
            end_utc.isoformat(),
            closure_id,
        )
        closure = self._repository.get_closure(closure_id)
        if closure is None:
            raise ClosureNotFoundError(f"Closure {closure_id} was not found")
        return closure

    def delete_closure(self, closure_id: int) -> None:
        if not self._repository.delete_closure(closure_id):
            raise ClosureNotFoundError(f"Closure {closure_id} was not found")
        logger.info("Deleted closure %s", closure_id)
