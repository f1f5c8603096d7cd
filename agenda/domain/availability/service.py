"""Availability service - Weekly templates and slot listing"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_BUFFER_MINUTES, DEFAULT_SESSION_MINUTES, MAX_SLOT_RANGE_DAYS
from ...exceptions import NotFoundError, ValidationError
from ...models import Professional
from ..appointments.repository import AppointmentRepository
from .repository import AvailabilityRepository
from .schemas import DayTemplate
from .slot_generator import Slot, iter_slots

logger = logging.getLogger(__name__)

WEEKDAYS = range(7)


def default_day(day_of_week: int) -> DayTemplate:
    return DayTemplate(
        day_of_week=day_of_week,
        enabled=False,
        session_minutes=DEFAULT_SESSION_MINUTES,
        buffer_minutes=DEFAULT_BUFFER_MINUTES,
    )


def validate_day(day: DayTemplate) -> None:
    """Enforce template invariants; raises ValidationError naming the weekday"""
    prefix = f"day {day.day_of_week}"

    if day.session_minutes <= 0:
        raise ValidationError(f"{prefix}: session duration must be greater than zero")
    if day.buffer_minutes < 0:
        raise ValidationError(f"{prefix}: buffer interval cannot be negative")

    if (day.start_time is None) != (day.end_time is None):
        raise ValidationError(f"{prefix}: working window needs both start and end")
    if day.enabled and day.start_time is None:
        raise ValidationError(f"{prefix}: enabled days need a working window")
    if day.start_time is not None and day.start_time >= day.end_time:
        raise ValidationError(f"{prefix}: window start must be before window end")

    if (day.lunch_start is None) != (day.lunch_end is None):
        raise ValidationError(f"{prefix}: lunch break needs both start and end")
    if day.lunch_start is not None:
        if day.lunch_start >= day.lunch_end:
            raise ValidationError(f"{prefix}: lunch start must be before lunch end")
        if day.start_time is None:
            raise ValidationError(f"{prefix}: lunch break needs a working window")
        if day.lunch_start < day.start_time or day.lunch_end > day.end_time:
            raise ValidationError(f"{prefix}: lunch break must lie inside the working window")


class AvailabilityService:
    """Service layer for availability templates and slots"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()
        self.appointments = AppointmentRepository()

    def get_professional(self, professional_id: int) -> Professional:
        professional = self.repo.get_professional(self.db, professional_id)
        if not professional:
            raise NotFoundError("Professional not found")
        return professional

    def get_week(self, professional_id: int) -> list[DayTemplate]:
        """All 7 weekdays; days never configured come back disabled with defaults"""
        self.get_professional(professional_id)
        stored = self.repo.templates_by_weekday(self.db, professional_id)

        if not stored:
            logger.info(f"📅 No availability configured for professional {professional_id}")

        return [
            DayTemplate.model_validate(stored[d]) if d in stored else default_day(d)
            for d in WEEKDAYS
        ]

    def put_week(self, professional_id: int, days: list[DayTemplate]) -> list[DayTemplate]:
        """Replace the professional's week. Validated in full before anything is written."""
        self.get_professional(professional_id)

        if not days:
            raise ValidationError("At least one day is required")

        seen = set()
        for day in days:
            if day.day_of_week in seen:
                raise ValidationError(f"day {day.day_of_week} given more than once")
            seen.add(day.day_of_week)
            validate_day(day)

        self.repo.replace_templates(
            self.db, professional_id, [day.model_dump() for day in days]
        )
        logger.info(
            f"✅ Availability saved for professional {professional_id}: days={sorted(seen)}"
        )
        return self.get_week(professional_id)

    def copy_day(self, professional_id: int, from_day: int, to_day: int) -> list[DayTemplate]:
        """Copy one weekday's template onto another; an unset source copies as disabled"""
        self.get_professional(professional_id)
        source = self.repo.get_template(self.db, professional_id, from_day)

        day = DayTemplate.model_validate(source) if source else default_day(from_day)
        row = day.model_dump()
        row["day_of_week"] = to_day

        self.repo.upsert_template(self.db, professional_id, row)
        logger.info(f"📋 Copied day {from_day} → {to_day} for professional {professional_id}")
        return self.get_week(professional_id)

    def list_slots(
        self,
        professional_id: int,
        date_from: date,
        date_to: date,
        exclude_appointment_id: Optional[int] = None,
    ) -> list[Slot]:
        """
        Free slots in [date_from, date_to].

        Templates and bookings are loaded once per call and shared across dates.
        """
        self.get_professional(professional_id)

        if date_to < date_from:
            raise ValidationError("date_to must be on or after date_from")
        if date_to - date_from > timedelta(days=MAX_SLOT_RANGE_DAYS):
            raise ValidationError(f"Date range cannot exceed {MAX_SLOT_RANGE_DAYS} days")

        templates = self.repo.templates_by_weekday(self.db, professional_id)
        booked = self.appointments.list_occupying(self.db, professional_id, date_from, date_to)

        return list(iter_slots(templates, date_from, date_to, booked, exclude_appointment_id))

    def configured_days(self, professional_id: int) -> list[int]:
        templates = self.repo.templates_by_weekday(self.db, professional_id)
        return [
            d
            for d, t in sorted(templates.items())
            if t.enabled and t.start_time is not None and t.end_time is not None
        ]
