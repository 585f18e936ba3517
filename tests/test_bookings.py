from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pitchbook.controllers.availability_controller import router as availability_router
from pitchbook.controllers.booking_controller import router as booking_router
from pitchbook.domain.models import BookingStatus, OperatingWindow
from pitchbook.repository.data_repository import DataRepository
from pitchbook.services.availability_service import AvailabilityService
from pitchbook.services.booking_service import (
    BookingConflictError,
    BookingNotFoundError,
    BookingService,
    BookingValidationError,
    PitchUnavailableError,
)
from pitchbook.services.pitch_service import PitchNotFoundError, PitchService
from pitchbook.utils.config import Settings, get_settings


NOW = datetime(2026, 10, 19, 7, 0, tzinfo=timezone.utc)


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        default_timezone="UTC",
        seed_demo_data=False,
        currency="gbp",
    )


def _build_repository(tmp_path, filename: str) -> tuple[DataRepository, Settings]:
    settings = _build_test_settings(tmp_path, filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    return repository, settings


def _seed_pitch(repository: DataRepository, price_per_hour: int = 6000) -> int:
    pitch_id = repository.create_pitch("Astro 1", price_per_hour, "UTC")
    repository.replace_schedules(
        pitch_id,
        [OperatingWindow(weekday=1, start_time=time(9, 0), end_time=time(12, 0))],
    )
    return pitch_id


def _utc(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 19, hour, minute, tzinfo=timezone.utc)


def _book(service: BookingService, pitch_id: int, start: datetime, end: datetime):
    return service.create_booking(
        pitch_id=pitch_id,
        start=start,
        end=end,
        organizer_name="Jordan",
        organizer_email="jordan@example.com",
    )


# --- Service ---

def test_create_booking_is_pending_and_priced_by_duration(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_price.db")
    pitch_id = _seed_pitch(repository)
    service = BookingService(repository=repository, settings=settings, clock=lambda: NOW)

    booking = _book(service, pitch_id, _utc(9), _utc(10, 30))

    assert booking.status is BookingStatus.PENDING
    assert booking.total_amount_pence == 9000
    assert booking.currency == "gbp"
    assert booking.source == "ONLINE"
    assert booking.start == _utc(9)


def test_overlapping_booking_is_rejected(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_conflict.db")
    pitch_id = _seed_pitch(repository)
    service = BookingService(repository=repository, settings=settings)
    _book(service, pitch_id, _utc(10), _utc(11))

    with pytest.raises(BookingConflictError):
        _book(service, pitch_id, _utc(10, 30), _utc(11, 30))
    with pytest.raises(BookingConflictError):
        _book(service, pitch_id, _utc(9), _utc(12))

    # Touching ranges are fine.
    _book(service, pitch_id, _utc(11), _utc(12))
    _book(service, pitch_id, _utc(9), _utc(10))
    assert repository.count_bookings() == 3


def test_booking_inside_closure_is_rejected(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_closure.db")
    pitch_id = _seed_pitch(repository)
    repository.create_closure(pitch_id, "Resurfacing", None, _utc(0), _utc(23))
    service = BookingService(repository=repository, settings=settings)

    with pytest.raises(BookingConflictError):
        _book(service, pitch_id, _utc(9), _utc(10))


def test_booking_requires_existing_active_pitch_and_valid_range(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_validation.db")
    pitch_id = _seed_pitch(repository)
    service = BookingService(repository=repository, settings=settings)

    with pytest.raises(PitchNotFoundError):
        _book(service, 999, _utc(9), _utc(10))
    with pytest.raises(BookingValidationError):
        _book(service, pitch_id, _utc(10), _utc(10))

    repository.set_pitch_active(pitch_id, False)
    with pytest.raises(PitchUnavailableError):
        _book(service, pitch_id, _utc(9), _utc(10))


def test_status_updates_stamp_timestamps(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_status.db")
    pitch_id = _seed_pitch(repository)
    service = BookingService(repository=repository, settings=settings, clock=lambda: NOW)
    booking = _book(service, pitch_id, _utc(9), _utc(10))

    confirmed = service.update_status(booking.booking_id, BookingStatus.CONFIRMED)
    assert confirmed.status is BookingStatus.CONFIRMED
    assert confirmed.confirmed_at == NOW

    cancelled = service.update_status(
        booking.booking_id,
        BookingStatus.CANCELLED,
        cancellation_reason="Rain",
    )
    assert cancelled.status is BookingStatus.CANCELLED
    assert cancelled.cancelled_at == NOW
    assert cancelled.cancellation_reason == "Rain"

    with pytest.raises(BookingNotFoundError):
        service.update_status(999, BookingStatus.CONFIRMED)


def test_cancelled_booking_frees_its_slot(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_release.db")
    pitch_id = _seed_pitch(repository)
    service = BookingService(repository=repository, settings=settings, clock=lambda: NOW)
    availability = AvailabilityService(repository=repository, settings=settings, clock=lambda: NOW)
    booking = _book(service, pitch_id, _utc(10), _utc(11))

    held = availability.get_day_availability(pitch_id, _utc(0).date())
    assert [slot.available for slot in held] == [True, False, True]

    service.update_status(booking.booking_id, BookingStatus.CANCELLED)
    released = availability.get_day_availability(pitch_id, _utc(0).date())
    assert [slot.available for slot in released] == [True, True, True]

    replacement = _book(service, pitch_id, _utc(10), _utc(11))
    assert replacement.status is BookingStatus.PENDING

    # The cancelled booking cannot be reinstated over the replacement.
    with pytest.raises(BookingConflictError):
        service.update_status(booking.booking_id, BookingStatus.CONFIRMED)


def test_reinstated_booking_drops_cancellation_details(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_reinstate.db")
    pitch_id = _seed_pitch(repository)
    service = BookingService(repository=repository, settings=settings, clock=lambda: NOW)
    booking = _book(service, pitch_id, _utc(9), _utc(10))
    service.update_status(
        booking.booking_id,
        BookingStatus.CANCELLED,
        cancellation_reason="Rain",
    )

    reinstated = service.update_status(booking.booking_id, BookingStatus.CONFIRMED)

    assert reinstated.status is BookingStatus.CONFIRMED
    assert reinstated.confirmed_at == NOW
    assert reinstated.cancelled_at is None
    assert reinstated.cancellation_reason is None


def test_list_bookings_filters(tmp_path):
    repository, settings = _build_repository(tmp_path, "booking_list.db")
    pitch_id = _seed_pitch(repository)
    other_pitch_id = repository.create_pitch("Astro 2", 5000, "UTC")
    service = BookingService(repository=repository, settings=settings, clock=lambda: NOW)
    first = _book(service, pitch_id, _utc(9), _utc(10))
    _book(service, pitch_id, _utc(11), _utc(12))
    _book(service, other_pitch_id, _utc(9), _utc(10))
    service.update_status(first.booking_id, BookingStatus.CONFIRMED)

    assert len(service.list_bookings()) == 3
    by_pitch = service.list_bookings(pitch_id=pitch_id)
    assert [b.start for b in by_pitch] == [_utc(11), _utc(9)]
    confirmed = service.list_bookings(status=BookingStatus.CONFIRMED)
    assert [b.booking_id for b in confirmed] == [first.booking_id]
    late = service.list_bookings(pitch_id=pitch_id, start_from=_utc(10, 30))
    assert [b.start for b in late] == [_utc(11)]


# --- HTTP ---

def _build_test_app(tmp_path) -> tuple[FastAPI, DataRepository]:
    repository, settings = _build_repository(tmp_path, "booking_api.db")
    app = FastAPI()
    app.include_router(availability_router)
    app.include_router(booking_router)
    app.state.pitch_service = PitchService(repository=repository, settings=settings)
    app.state.availability_service = AvailabilityService(
        repository=repository,
        settings=settings,
        clock=lambda: NOW,
    )
    app.state.booking_service = BookingService(
        repository=repository,
        settings=settings,
        clock=lambda: NOW,
    )
    return app, repository


def _payload(pitch_id: int, start: str, end: str) -> dict:
    return {
        "pitch_id": pitch_id,
        "start_time": start,
        "end_time": end,
        "organizer_name": "Jordan",
        "organizer_email": "jordan@example.com",
    }


def test_booking_endpoints_end_to_end(tmp_path):
    app, repository = _build_test_app(tmp_path)
    pitch_id = _seed_pitch(repository)
    client = TestClient(app)

    created = client.post(
        "/bookings",
        json=_payload(pitch_id, "2026-10-19T10:00:00Z", "2026-10-19T11:00:00Z"),
    )
    assert created.status_code == 201
    booking = created.json()["booking"]
    assert booking["status"] == "PENDING"
    assert booking["total_amount_pence"] == 6000

    conflict = client.post(
        "/bookings",
        json=_payload(pitch_id, "2026-10-19T10:30:00Z", "2026-10-19T11:30:00Z"),
    )
    assert conflict.status_code == 409

    availability = client.get(f"/pitches/{pitch_id}/availability", params={"date": "2026-10-19"})
    assert [slot["available"] for slot in availability.json()["slots"]] == [True, False, True]

    listed = client.get("/manager/bookings", params={"pitchId": pitch_id, "status": "PENDING"})
    assert [item["id"] for item in listed.json()["bookings"]] == [booking["id"]]

    cancelled = client.put(
        f"/manager/bookings/{booking['id']}",
        json={"status": "CANCELLED", "cancellation_reason": "Team short"},
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["booking"]["cancellation_reason"] == "Team short"

    rebooked = client.post(
        "/bookings",
        json=_payload(pitch_id, "2026-10-19T10:30:00Z", "2026-10-19T11:30:00Z"),
    )
    assert rebooked.status_code == 201


def test_booking_endpoint_error_mapping(tmp_path):
    app, repository = _build_test_app(tmp_path)
    pitch_id = _seed_pitch(repository)
    client = TestClient(app)

    inverted = client.post(
        "/bookings",
        json=_payload(pitch_id, "2026-10-19T11:00:00Z", "2026-10-19T10:00:00Z"),
    )
    assert inverted.status_code == 422

    missing = client.post(
        "/bookings",
        json=_payload(999, "2026-10-19T10:00:00Z", "2026-10-19T11:00:00Z"),
    )
    assert missing.status_code == 404

    repository.set_pitch_active(pitch_id, False)
    inactive = client.post(
        "/bookings",
        json=_payload(pitch_id, "2026-10-19T10:00:00Z", "2026-10-19T11:00:00Z"),
    )
    assert inactive.status_code == 400

    unknown = client.put("/manager/bookings/999", json={"status": "CONFIRMED"})
    assert unknown.status_code == 404

    bad_status = client.put("/manager/bookings/1", json={"status": "LOST"})
    assert bad_status.status_code == 422
