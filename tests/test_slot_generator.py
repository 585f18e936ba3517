"""Tests for the one-hour slot generator and its overlap predicate."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from pitchbook.domain.models import BookedInterval, ClosureInterval, OperatingWindow
from pitchbook.services.availability_service import (
    generate_slots,
    intervals_overlap,
    select_operating_window,
)


MONDAY = date(2026, 10, 19)
PRICE = 6000


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def monday_window(start: time = time(9, 0), end: time = time(12, 0)) -> OperatingWindow:
    return OperatingWindow(weekday=1, start_time=start, end_time=end)


def run(window=None, closures=(), booked=(), now=None, target=MONDAY, tz=timezone.utc):
    return generate_slots(
        target_date=target,
        window=window if window is not None else monday_window(),
        closures=list(closures),
        booked=list(booked),
        price=PRICE,
        now=now or at(7),
        tz=tz,
    )


def availability(slots) -> list[tuple[int, bool]]:
    return [(slot.start.hour, slot.available) for slot in slots]


# --- Overlap predicate ---

def test_overlap_detects_partial_and_containing_intervals() -> None:
    assert intervals_overlap(at(9), at(10), at(9, 30), at(10, 30))
    assert intervals_overlap(at(9), at(10), at(8), at(11))
    assert intervals_overlap(at(8), at(11), at(9), at(10))
    assert intervals_overlap(at(9), at(10), at(9), at(10))


def test_touching_intervals_do_not_overlap() -> None:
    assert not intervals_overlap(at(10), at(11), at(9), at(10))
    assert not intervals_overlap(at(9), at(10), at(10), at(11))


# --- Scenarios ---

def test_open_window_yields_three_available_slots() -> None:
    slots = run()

    assert availability(slots) == [(9, True), (10, True), (11, True)]
    assert all(slot.price == PRICE for slot in slots)


def test_booking_blocks_only_its_slot() -> None:
    slots = run(booked=[BookedInterval(start=at(10), end=at(11))])

    assert availability(slots) == [(9, True), (10, False), (11, True)]


def test_closure_blocks_its_slot() -> None:
    slots = run(closures=[ClosureInterval(start=at(11), end=at(12))])

    assert availability(slots) == [(9, True), (10, True), (11, False)]


def test_started_and_ended_slots_are_unavailable() -> None:
    slots = run(now=at(10, 30))

    assert availability(slots) == [(9, False), (10, False), (11, True)]


def test_slot_starting_exactly_now_stays_available() -> None:
    slots = run(now=at(10))

    assert availability(slots) == [(9, False), (10, True), (11, True)]


def test_window_shorter_than_an_hour_yields_no_slots() -> None:
    assert run(window=monday_window(time(9, 0), time(9, 30))) == []


def test_trailing_partial_slot_is_dropped() -> None:
    slots = run(window=monday_window(time(9, 0), time(11, 45)))

    assert [slot.start.hour for slot in slots] == [9, 10]
    assert slots[-1].end == at(11)


def test_missing_window_yields_no_slots() -> None:
    slots = generate_slots(
        target_date=MONDAY,
        window=None,
        closures=[],
        booked=[],
        price=PRICE,
        now=at(7),
    )
    assert slots == []


def test_inverted_window_yields_no_slots() -> None:
    assert run(window=monday_window(time(12, 0), time(9, 0))) == []
    assert run(window=monday_window(time(9, 0), time(9, 0))) == []


# --- Boundaries ---

def test_booking_equal_to_slot_blocks_it() -> None:
    slots = run(booked=[BookedInterval(start=at(9), end=at(10))])

    assert availability(slots)[0] == (9, False)


def test_booking_ending_at_slot_start_does_not_block_it() -> None:
    slots = run(booked=[BookedInterval(start=at(8), end=at(9))])

    assert availability(slots) == [(9, True), (10, True), (11, True)]


def test_closure_spanning_several_slots_blocks_each() -> None:
    slots = run(closures=[ClosureInterval(start=at(9, 30), end=at(11, 15))])

    assert availability(slots) == [(9, False), (10, False), (11, False)]


def test_multi_day_closure_blocks_whole_day() -> None:
    closure = ClosureInterval(start=at(0) - timedelta(days=2), end=at(0) + timedelta(days=2))

    assert not any(slot.available for slot in run(closures=[closure]))


def test_naive_interval_bounds_are_read_as_utc() -> None:
    slots = run(booked=[BookedInterval(start=datetime(2026, 10, 19, 10), end=datetime(2026, 10, 19, 11))])

    assert availability(slots) == [(9, True), (10, False), (11, True)]


# --- Structural properties ---

def test_slots_are_contiguous_one_hour_and_inside_window() -> None:
    slots = run(window=monday_window(time(6, 30), time(22, 45)))

    assert slots[0].start == at(6, 30)
    assert slots[-1].end <= at(22, 45)
    for slot in slots:
        assert slot.end - slot.start == timedelta(hours=1)
    for current, following in zip(slots, slots[1:]):
        assert current.end == following.start
        assert current.start < following.start


def test_generation_is_idempotent() -> None:
    kwargs = {
        "booked": [BookedInterval(start=at(10), end=at(11))],
        "closures": [ClosureInterval(start=at(11), end=at(12))],
        "now": at(9, 15),
    }
    assert run(**kwargs) == run(**kwargs)


# --- Timezones ---

def test_window_is_read_in_venue_timezone() -> None:
    madrid = ZoneInfo("Europe/Madrid")
    slots = run(tz=madrid)

    # Madrid is UTC+2 in October before the clocks change.
    assert [slot.start for slot in slots] == [at(7), at(8), at(9)]


def test_spring_forward_day_has_one_slot_less() -> None:
    london = ZoneInfo("Europe/London")
    sunday = date(2026, 3, 29)
    window = OperatingWindow(weekday=0, start_time=time(0, 0), end_time=time(4, 0))

    slots = run(window=window, target=sunday, tz=london, now=at(0, day=date(2026, 3, 1)))

    assert len(slots) == 3
    assert all(slot.end - slot.start == timedelta(hours=1) for slot in slots)
    assert slots[0].start == at(0, day=sunday)
    assert slots[-1].end == at(3, day=sunday)


def test_fall_back_day_has_one_slot_more() -> None:
    london = ZoneInfo("Europe/London")
    sunday = date(2026, 10, 25)
    window = OperatingWindow(weekday=0, start_time=time(0, 0), end_time=time(4, 0))

    slots = run(window=window, target=sunday, tz=london, now=at(0, day=date(2026, 10, 1)))

    assert len(slots) == 5
    assert slots[0].start == at(23, day=date(2026, 10, 24))
    assert slots[-1].end == at(4, day=sunday)


# --- Window selection ---

def test_select_window_matches_sunday_based_weekday() -> None:
    windows = [
        OperatingWindow(weekday=0, start_time=time(8, 0), end_time=time(20, 0)),
        OperatingWindow(weekday=1, start_time=time(9, 0), end_time=time(22, 0)),
    ]

    assert select_operating_window(windows, MONDAY) == windows[1]
    assert select_operating_window(windows, date(2026, 10, 18)) == windows[0]
    assert select_operating_window(windows, date(2026, 10, 20)) is None


def test_select_window_honours_validity_range() -> None:
    regular = OperatingWindow(weekday=1, start_time=time(9, 0), end_time=time(22, 0))
    winter = OperatingWindow(
        weekday=1,
        start_time=time(10, 0),
        end_time=time(18, 0),
        valid_from=date(2026, 11, 1),
        valid_until=date(2027, 2, 28),
    )

    assert select_operating_window([regular, winter], MONDAY) == regular
    assert select_operating_window([regular, winter], date(2026, 11, 2)) == winter
    assert select_operating_window([winter], MONDAY) is None
