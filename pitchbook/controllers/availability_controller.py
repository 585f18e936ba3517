"""HTTP controller layer for pitch listing and slot availability."""

from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from pitchbook.controllers.dependencies import get_availability_service, get_pitch_service
from pitchbook.services.availability_service import AvailabilityService
from pitchbook.services.pitch_service import PitchNotFoundError, PitchService
from pitchbook.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["availability"])


class PitchResponse(BaseModel):
    id: int = Field(gt=0)
    name: str
    price_per_hour: int = Field(ge=0)
    is_active: bool
    timezone: str


class PitchListResponse(BaseModel):
    pitches: list[PitchResponse]


class SlotResponse(BaseModel):
    """One bookable hour; `price` is the pitch's hourly rate."""

    start: datetime
    end: datetime
    available: bool
    price: int = Field(ge=0)


class AvailabilityResponse(BaseModel):
    slots: list[SlotResponse]


@router.get(
    "/pitches",
    response_model=PitchListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_pitches(
    service: PitchService = Depends(get_pitch_service),
) -> PitchListResponse:
    return PitchListResponse(
        pitches=[
            PitchResponse(
                id=pitch.pitch_id,
                name=pitch.name,
                price_per_hour=pitch.price_per_hour,
                is_active=pitch.is_active,
                timezone=pitch.timezone,
            )
            for pitch in service.list_pitches(active_only=True)
        ]
    )


@router.get(
    "/pitches/{pitch_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
async def get_availability(
    pitch_id: int,
    target_date: date = Query(alias="date"),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Return the day's one-hour slots; empty when closed or inactive."""
    try:
        slots = service.get_day_availability(pitch_id, target_date)
        return AvailabilityResponse(
            slots=[
                SlotResponse(
                    start=slot.start,
                    end=slot.end,
                    available=slot.available,
                    price=slot.price,
                )
                for slot in slots
            ]
        )
    except PitchNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch availability",
        ) from exc
