"""HTTP controller layer for booking creation and management."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator

from pitchbook.controllers.dependencies import get_booking_service
from pitchbook.domain.models import BookingStatus
from pitchbook.repository.data_repository import BookingRecord
from pitchbook.services.booking_service import (
    BookingConflictError,
    BookingNotFoundError,
    BookingService,
    BookingValidationError,
    PitchUnavailableError,
)
from pitchbook.services.pitch_service import PitchNotFoundError
from pitchbook.utils.logger import get_logger
from pitchbook.utils.timeutils import ensure_utc


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


class CreateBookingRequest(BaseModel):
    pitch_id: int = Field(gt=0)
    start_time: datetime
    end_time: datetime
    organizer_name: str = Field(min_length=1)
    organizer_email: str = Field(min_length=3)
    notes: Optional[str] = None

    @field_validator("organizer_email")
    @classmethod
    def validate_email_shape(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("organizer_email must be an email address")
        return value

    @model_validator(mode="after")
    def validate_range(self) -> "CreateBookingRequest":
        if ensure_utc(self.end_time) <= ensure_utc(self.start_time):
            raise ValueError("end_time must be later than start_time")
        return self


class UpdateBookingStatusRequest(BaseModel):
    status: BookingStatus
    cancellation_reason: Optional[str] = None


class BookingResponse(BaseModel):
    id: int = Field(gt=0)
    pitch_id: int = Field(gt=0)
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    organizer_name: str
    organizer_email: str
    notes: Optional[str] = None
    total_amount_pence: int = Field(ge=0)
    currency: str
    source: str
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime


class BookingEnvelope(BaseModel):
    booking: BookingResponse


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]


def _to_response(record: BookingRecord) -> BookingResponse:
    return BookingResponse(
        id=record.booking_id,
        pitch_id=record.pitch_id,
        start_time=record.start,
        end_time=record.end,
        status=record.status,
        organizer_name=record.organizer_name,
        organizer_email=record.organizer_email,
        notes=record.notes,
        total_amount_pence=record.total_amount_pence,
        currency=record.currency,
        source=record.source,
        confirmed_at=record.confirmed_at,
        cancelled_at=record.cancelled_at,
        cancellation_reason=record.cancellation_reason,
        created_at=record.created_at,
    )


@router.post(
    "/bookings",
    response_model=BookingEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingEnvelope:
    """Hold a time range on a pitch as a PENDING booking."""
    try:
        record = service.create_booking(
            pitch_id=payload.pitch_id,
            start=payload.start_time,
            end=payload.end_time,
            organizer_name=payload.organizer_name,
            organizer_email=payload.organizer_email,
            notes=payload.notes,
        )
        return BookingEnvelope(booking=_to_response(record))
    except (BookingValidationError, PitchUnavailableError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except PitchNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking",
        ) from exc


@router.get(
    "/manager/bookings",
    response_model=BookingListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_bookings(
    pitch_id: Optional[int] = Query(default=None, gt=0, alias="pitchId"),
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    records = service.list_bookings(
        pitch_id=pitch_id,
        status=booking_status,
        start_from=start_date,
        end_until=end_date,
    )
    return BookingListResponse(bookings=[_to_response(record) for record in records])


@router.put(
    "/manager/bookings/{booking_id}",
    response_model=BookingEnvelope,
    status_code=status.HTTP_200_OK,
)
async def update_booking_status(
    booking_id: int,
    payload: UpdateBookingStatusRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingEnvelope:
    try:
        record = service.update_status(
            booking_id,
            payload.status,
            cancellation_reason=payload.cancellation_reason,
        )
        return BookingEnvelope(booking=_to_response(record))
    except BookingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except BookingConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking status failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking",
        ) from exc
