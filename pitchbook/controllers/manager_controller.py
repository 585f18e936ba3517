"""Controller layer for manager pitch, schedule and closure endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from pitchbook.controllers.availability_controller import PitchResponse
from pitchbook.controllers.dependencies import get_pitch_service
from pitchbook.domain.models import OperatingWindow, Pitch
from pitchbook.repository.data_repository import ClosureRecord
from pitchbook.services.pitch_service import (
    ClosureNotFoundError,
    ClosureValidationError,
    PitchNotFoundError,
    PitchService,
    PitchValidationError,
    ScheduleValidationError,
)
from pitchbook.utils.config import get_settings
from pitchbook.utils.logger import get_logger
from pitchbook.utils.timeutils import ensure_utc, format_hhmm, parse_hhmm


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/manager", tags=["manager"])


class CreatePitchRequest(BaseModel):
    name: str = Field(min_length=1)
    price_per_hour: int = Field(ge=0)
    timezone: Optional[str] = None
    is_active: bool = True


class UpdatePitchRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price_per_hour: Optional[int] = Field(default=None, ge=0)
    timezone: Optional[str] = None
    is_active: Optional[bool] = None


class PitchEnvelope(BaseModel):
    pitch: PitchResponse

    @classmethod
    def from_pitch(cls, pitch: Pitch) -> "PitchEnvelope":
        return cls(
            pitch=PitchResponse(
                id=pitch.pitch_id,
                name=pitch.name,
                price_per_hour=pitch.price_per_hour,
                is_active=pitch.is_active,
                timezone=pitch.timezone,
            )
        )


class ScheduleWindow(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(pattern=settings.schedule_time_regex)
    end_time: str = Field(pattern=settings.schedule_time_regex)
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None

    @model_validator(mode="after")
    def validate_window_boundaries(self) -> "ScheduleWindow":
        if parse_hhmm(self.end_time) <= parse_hhmm(self.start_time):
            raise ValueError("end_time must be later than start_time")
        return self

    def to_domain(self) -> OperatingWindow:
        return OperatingWindow(
            weekday=self.day_of_week,
            start_time=parse_hhmm(self.start_time),
            end_time=parse_hhmm(self.end_time),
            valid_from=self.valid_from,
            valid_until=self.valid_until,
        )

    @classmethod
    def from_domain(cls, window: OperatingWindow) -> "ScheduleWindow":
        return cls(
            day_of_week=window.weekday,
            start_time=format_hhmm(window.start_time),
            end_time=format_hhmm(window.end_time),
            valid_from=window.valid_from,
            valid_until=window.valid_until,
        )


class ScheduleRequest(BaseModel):
    schedules: list[ScheduleWindow]


class ScheduleResponse(BaseModel):
    schedules: list[ScheduleWindow]


class CreateClosureRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def validate_range(self) -> "CreateClosureRequest":
        if ensure_utc(self.end_date) <= ensure_utc(self.start_date):
            raise ValueError("end_date must be later than start_date")
        return self


class ClosureResponse(BaseModel):
    id: int = Field(gt=0)
    pitch_id: int = Field(gt=0)
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime

    @classmethod
    def from_record(cls, record: ClosureRecord) -> "ClosureResponse":
        return cls(
            id=record.closure_id,
            pitch_id=record.pitch_id,
            title=record.title,
            description=record.description,
            start_date=record.start,
            end_date=record.end,
        )


class ClosureEnvelope(BaseModel):
    closure: ClosureResponse


class ClosureListResponse(BaseModel):
    closures: list[ClosureResponse]


class MessageResponse(BaseModel):
    message: str


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post(
    "/pitches",
    response_model=PitchEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_pitch(
    payload: CreatePitchRequest,
    service: PitchService = Depends(get_pitch_service),
) -> PitchEnvelope:
    try:
        pitch = service.create_pitch(
            name=payload.name,
            price_per_hour=payload.price_per_hour,
            timezone_name=payload.timezone,
            is_active=payload.is_active,
        )
    except PitchValidationError as exc:
        raise _bad_request(exc) from exc
    return PitchEnvelope.from_pitch(pitch)


@router.put(
    "/pitches/{pitch_id}",
    response_model=PitchEnvelope,
    status_code=status.HTTP_200_OK,
)
async def update_pitch(
    pitch_id: int,
    payload: UpdatePitchRequest,
    service: PitchService = Depends(get_pitch_service),
) -> PitchEnvelope:
    try:
        pitch = service.update_pitch(
            pitch_id,
            name=payload.name,
            price_per_hour=payload.price_per_hour,
            timezone_name=payload.timezone,
            is_active=payload.is_active,
        )
    except PitchNotFoundError as exc:
        raise _not_found(exc) from exc
    except PitchValidationError as exc:
        raise _bad_request(exc) from exc
    return PitchEnvelope.from_pitch(pitch)


@router.delete(
    "/pitches/{pitch_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def deactivate_pitch(
    pitch_id: int,
    service: PitchService = Depends(get_pitch_service),
) -> MessageResponse:
    """Soft-delete a pitch by marking it inactive."""
    try:
        service.deactivate_pitch(pitch_id)
    except PitchNotFoundError as exc:
        raise _not_found(exc) from exc
    return MessageResponse(message="Pitch deactivated successfully")


@router.get(
    "/pitches/{pitch_id}/schedule",
    response_model=ScheduleResponse,
    status_code=status.HTTP_200_OK,
)
async def get_schedule(
    pitch_id: int,
    service: PitchService = Depends(get_pitch_service),
) -> ScheduleResponse:
    try:
        windows = service.list_schedules(pitch_id)
    except PitchNotFoundError as exc:
        raise _not_found(exc) from exc
    return ScheduleResponse(schedules=[ScheduleWindow.from_domain(w) for w in windows])


@router.post(
    "/pitches/{pitch_id}/schedule",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def replace_schedule(
    pitch_id: int,
    payload: ScheduleRequest,
    service: PitchService = Depends(get_pitch_service),
) -> ScheduleResponse:
    """Replace the whole weekly schedule of a pitch."""
    try:
        windows = service.replace_schedules(
            pitch_id,
            [item.to_domain() for item in payload.schedules],
        )
    except PitchNotFoundError as exc:
        raise _not_found(exc) from exc
    except ScheduleValidationError as exc:
        raise _bad_request(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected schedule failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save schedules",
        ) from exc
    return ScheduleResponse(schedules=[ScheduleWindow.from_domain(w) for w in windows])


@router.get(
    "/pitches/{pitch_id}/closures",
    response_model=ClosureListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_closures(
    pitch_id: int,
    service: PitchService = Depends(get_pitch_service),
) -> ClosureListResponse:
    try:
        records = service.list_closures(pitch_id)
    except PitchNotFoundError as exc:
        raise _not_found(exc) from exc
    return ClosureListResponse(closures=[ClosureResponse.from_record(r) for r in records])


@router.post(
    "/pitches/{pitch_id}/closures",
    response_model=ClosureEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_closure(
    pitch_id: int,
    payload: CreateClosureRequest,
    service: PitchService = Depends(get_pitch_service),
) -> ClosureEnvelope:
    try:
        record = service.create_closure(
            pitch_id,
            title=payload.title,
            description=payload.description,
            start=payload.start_date,
            end=payload.end_date,
        )
    except PitchNotFoundError as exc:
        raise _not_found(exc) from exc
    except ClosureValidationError as exc:
        raise _bad_request(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected closure failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create closure",
        ) from exc
    return ClosureEnvelope(closure=ClosureResponse.from_record(record))


@router.delete(
    "/closures/{closure_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def delete_closure(
    closure_id: int,
    service: PitchService = Depends(get_pitch_service),
) -> MessageResponse:
    try:
        service.delete_closure(closure_id)
    except ClosureNotFoundError as exc:
        raise _not_found(exc) from exc
    return MessageResponse(message="Closure deleted successfully")
