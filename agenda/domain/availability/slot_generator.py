"""
Slot generation from weekly availability templates.

Pure functions only: no database, no clock. Callers pass the template for the
date's weekday and the appointments already on the books, and re-invoke the
generator for every date they need.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Iterator, Mapping, Optional

from ...utils.clock import add_minutes, date_range, to_minutes
from ..appointments.status import is_occupying


@dataclass(frozen=True)
class Slot:
    """
    A bookable interval derived from a template. Never persisted.

    Invariant: start < end, both on ``date``.
    """

    date: date
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def overlaps(self, start: time, end: time) -> bool:
        """Half-open overlap: touching intervals do not overlap"""
        return self.start < end and self.end > start

    def is_adjacent_to(self, other: "Slot", buffer_minutes: int) -> bool:
        """True when ``other`` starts exactly ``buffer_minutes`` after this slot ends"""
        if self.date != other.date:
            return False
        return to_minutes(other.start) - to_minutes(self.end) == buffer_minutes

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "start_time": self.start.strftime("%H:%M"),
            "end_time": self.end.strftime("%H:%M"),
        }


def _busy_intervals(on_date: date, booked: Iterable, exclude_appointment_id: Optional[int]):
    busy = []
    for appointment in booked:
        if appointment.appointment_date != on_date:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if not is_occupying(appointment.status):
            continue
        busy.append((appointment.start_time, appointment.end_time))
    return sorted(busy)


def generate_slots(
    template,
    on_date: date,
    booked: Iterable = (),
    exclude_appointment_id: Optional[int] = None,
) -> Iterator[Slot]:
    """
    Yield the free slots of ``on_date`` for a weekday template.

    The working window is walked from its start in steps of
    ``session_minutes + buffer_minutes``. A candidate is emitted when the whole
    session fits in the window, misses the lunch break and misses every
    occupying appointment on that date. Sessions that would cross the end of
    the window are dropped, never truncated.

    Args:
        template: Object with enabled/start_time/end_time/session_minutes/
            buffer_minutes/lunch_start/lunch_end (an AvailabilityTemplate row)
        on_date: The civil date to generate for
        booked: Appointments to treat as busy; other dates and
            non-occupying statuses are ignored
        exclude_appointment_id: Appointment to leave out of the busy set
            (the one being rescheduled)
    """
    if template is None or not template.enabled:
        return
    if template.start_time is None or template.end_time is None:
        return
    if not template.session_minutes or template.session_minutes <= 0:
        return

    session = template.session_minutes
    step = session + max(template.buffer_minutes or 0, 0)
    busy = _busy_intervals(on_date, booked, exclude_appointment_id)

    lunch = None
    if template.lunch_start is not None and template.lunch_end is not None:
        lunch = (template.lunch_start, template.lunch_end)

    start = template.start_time
    while start is not None and start < template.end_time:
        end = add_minutes(start, session)
        if end is None or end > template.end_time:
            break

        slot = Slot(date=on_date, start=start, end=end)
        in_lunch = lunch is not None and slot.overlaps(*lunch)
        taken = any(slot.overlaps(busy_start, busy_end) for busy_start, busy_end in busy)

        if not in_lunch and not taken:
            yield slot

        start = add_minutes(start, step)


def iter_slots(
    templates_by_weekday: Mapping[int, object],
    date_from: date,
    date_to: date,
    booked: Iterable = (),
    exclude_appointment_id: Optional[int] = None,
) -> Iterator[Slot]:
    """Chain ``generate_slots`` over every date in [date_from, date_to]"""
    booked = list(booked)
    for on_date in date_range(date_from, date_to):
        yield from generate_slots(
            templates_by_weekday.get(on_date.weekday()),
            on_date,
            booked,
            exclude_appointment_id,
        )


def session_fits(template, start: time) -> Optional[time]:
    """
    Validate a requested start against a weekday template.

    Returns the derived end time when the session lies inside the working
    window and misses lunch, otherwise None. Does not look at bookings.
    """
    if template is None or not template.enabled:
        return None
    if template.start_time is None or template.end_time is None:
        return None

    end = add_minutes(start, template.session_minutes)
    if end is None or start < template.start_time or end > template.end_time:
        return None

    if template.lunch_start is not None and template.lunch_end is not None:
        if start < template.lunch_end and end > template.lunch_start:
            return None

    return end
