from datetime import date, time
from types import SimpleNamespace

import pytest

from agenda.domain.availability.slot_generator import (
    Slot,
    generate_slots,
    iter_slots,
    session_fits,
)

MONDAY = date(2030, 1, 7)


def template(**overrides):
    values = dict(
        enabled=True,
        start_time=time(9, 0),
        end_time=time(17, 0),
        session_minutes=50,
        buffer_minutes=10,
        lunch_start=time(12, 0),
        lunch_end=time(13, 0),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def booking(start, end, status="SCHEDULED", on_date=MONDAY, id=1):
    return SimpleNamespace(
        id=id, appointment_date=on_date, start_time=start, end_time=end, status=status
    )


def starts(slots):
    return [s.start for s in slots]


def test_lunch_break_splits_the_day():
    slots = list(generate_slots(template(), MONDAY))

    assert starts(slots) == [
        time(9, 0),
        time(10, 0),
        time(11, 0),
        time(13, 0),
        time(14, 0),
        time(15, 0),
        time(16, 0),
    ]
    assert slots[2].end == time(11, 50)
    assert all(s.date == MONDAY for s in slots)


def test_disabled_or_missing_template_yields_nothing():
    assert list(generate_slots(template(enabled=False), MONDAY)) == []
    assert list(generate_slots(None, MONDAY)) == []


def test_trailing_partial_session_is_dropped():
    slots = list(generate_slots(template(end_time=time(10, 30), lunch_start=None, lunch_end=None), MONDAY))
    assert starts(slots) == [time(9, 0)]


def test_zero_buffer_packs_sessions_back_to_back():
    tpl = template(session_minutes=60, buffer_minutes=0, end_time=time(12, 0))
    assert starts(generate_slots(tpl, MONDAY)) == [time(9, 0), time(10, 0), time(11, 0)]


def test_occupied_interval_removes_overlapping_slots():
    booked = [booking(time(10, 30), time(11, 20))]
    assert starts(generate_slots(template(), MONDAY, booked)) == [
        time(9, 0),
        time(13, 0),
        time(14, 0),
        time(15, 0),
        time(16, 0),
    ]


def test_abutting_booking_does_not_block():
    booked = [booking(time(9, 50), time(10, 0))]
    assert time(9, 0) in starts(generate_slots(template(), MONDAY, booked))
    assert time(10, 0) in starts(generate_slots(template(), MONDAY, booked))


@pytest.mark.parametrize(
    "status,blocked",
    [
        ("PRE_SCHEDULED", True),
        ("SCHEDULED", True),
        ("CONFIRMED", True),
        ("COMPLETED", True),
        ("CANCELLED", False),
        ("SERIES_ENDED", False),
    ],
)
def test_only_occupying_statuses_block(status, blocked):
    booked = [booking(time(10, 0), time(10, 50), status=status)]
    offered = time(10, 0) in starts(generate_slots(template(), MONDAY, booked))
    assert offered is not blocked


def test_bookings_on_other_dates_are_ignored():
    booked = [booking(time(10, 0), time(10, 50), on_date=date(2030, 1, 8))]
    assert time(10, 0) in starts(generate_slots(template(), MONDAY, booked))


def test_excluded_appointment_frees_its_own_slot():
    booked = [booking(time(10, 0), time(10, 50), id=42)]
    assert time(10, 0) not in starts(generate_slots(template(), MONDAY, booked))
    assert time(10, 0) in starts(
        generate_slots(template(), MONDAY, booked, exclude_appointment_id=42)
    )


def test_generator_is_lazy_and_restartable():
    tpl = template()
    gen = generate_slots(tpl, MONDAY)
    assert next(gen).start == time(9, 0)
    assert next(gen).start == time(10, 0)
    assert next(generate_slots(tpl, MONDAY)).start == time(9, 0)


def test_iter_slots_uses_each_dates_weekday():
    templates = {0: template(), 2: template(start_time=time(14, 0), end_time=time(15, 0))}
    slots = list(iter_slots(templates, MONDAY, date(2030, 1, 13)))

    by_date = {}
    for s in slots:
        by_date.setdefault(s.date, []).append(s.start)

    assert sorted(by_date) == [MONDAY, date(2030, 1, 9)]
    assert by_date[date(2030, 1, 9)] == [time(14, 0)]


def test_adjacency_is_buffer_apart():
    first, second = list(generate_slots(template(), MONDAY))[:2]
    assert first.is_adjacent_to(second, 10)
    assert not first.is_adjacent_to(second, 0)


def test_slot_rejects_inverted_interval():
    with pytest.raises(ValueError):
        Slot(MONDAY, time(10, 0), time(9, 0))


@pytest.mark.parametrize(
    "start,expected_end",
    [
        (time(9, 0), time(9, 50)),
        (time(9, 15), time(10, 5)),
        (time(16, 10), time(17, 0)),
        (time(16, 11), None),
        (time(8, 59), None),
        (time(11, 30), None),
        (time(12, 30), None),
        (time(13, 0), time(13, 50)),
    ],
)
def test_session_fits(start, expected_end):
    assert session_fits(template(), start) == expected_end
