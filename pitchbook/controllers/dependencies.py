"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from pitchbook.services.availability_service import AvailabilityService
from pitchbook.services.booking_service import BookingService
from pitchbook.services.pitch_service import PitchService


def _require_service(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_availability_service(request: Request) -> AvailabilityService:
    return _require_service(request, "availability_service", "Availability")


def get_booking_service(request: Request) -> BookingService:
    return _require_service(request, "booking_service", "Booking")


def get_pitch_service(request: Request) -> PitchService:
    return _require_service(request, "pitch_service", "Pitch")
