"""
Reschedule service - Self-service confirm/move through capability links.

A token is the only credential the end client holds: whoever has it may see
one appointment, confirm attendance, and move it once to a free slot within
the reschedule window.
"""

import logging
import secrets
from datetime import date, time, timedelta

from sqlalchemy.orm import Session

from ... import audit
from ...config import RESCHEDULE_TOKEN_TTL_DAYS, RESCHEDULE_WINDOW_DAYS
from ...exceptions import (
    ConflictError,
    ExpiredError,
    NotEligibleError,
    NotFoundError,
    TokenInvalidError,
    ValidationError,
)
from ...models import Appointment, RescheduleToken
from ...utils.clock import is_whole_minute, local_today, local_tomorrow, utcnow
from ..appointments.repository import AppointmentRepository
from ..appointments.status import RESCHEDULABLE_STATUSES, AppointmentStatus
from ..availability.repository import AvailabilityRepository
from ..availability.service import AvailabilityService
from ..availability.slot_generator import generate_slots
from .repository import RescheduleTokenRepository

logger = logging.getLogger(__name__)


def is_reschedulable(appointment: Appointment) -> bool:
    """Non-terminal, not yet confirmed-away and dated after today"""
    return (
        AppointmentStatus(appointment.status) in RESCHEDULABLE_STATUSES
        and appointment.appointment_date > local_today()
    )


def reschedule_window() -> tuple[date, date]:
    """Inclusive [first, last] dates a move may land on"""
    first = local_tomorrow()
    return first, first + timedelta(days=RESCHEDULE_WINDOW_DAYS - 1)


def build_reschedule_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/remarcar/{token}"


class RescheduleService:
    """Service layer for reschedule tokens"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RescheduleTokenRepository()
        self.appointments = AppointmentRepository()
        self.availability = AvailabilityRepository()

    def issue(self, appointment_id: int, commit: bool = True) -> RescheduleToken:
        appointment = self.appointments.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if not is_reschedulable(appointment):
            raise NotEligibleError()

        issued_at = utcnow()
        record = self.repo.create(
            self.db,
            appointment.id,
            secrets.token_urlsafe(32),
            issued_at,
            issued_at + timedelta(days=RESCHEDULE_TOKEN_TTL_DAYS),
        )
        if commit:
            self.db.commit()
            self.db.refresh(record)

        logger.info(f"🔗 Reschedule token issued for appointment {appointment.id}")
        return record

    def _load(self, token: str) -> RescheduleToken:
        """Unknown → TokenInvalidError, past expiry → ExpiredError"""
        record = self.repo.get_by_token(self.db, token) if token else None
        if not record:
            raise TokenInvalidError()
        if record.expires_at <= utcnow():
            raise ExpiredError()
        return record

    def resolve(self, token: str) -> dict:
        """
        Appointment summary plus candidate slots for the reschedule window.

        The appointment itself is left out of occupancy so its current time
        shows up as a candidate. A token already used for a move resolves with
        ``can_move`` false and no slots.
        """
        record = self._load(token)
        appointment = record.appointment
        if not is_reschedulable(appointment):
            raise NotEligibleError()

        can_move = record.used_at is None
        slots = []
        if can_move:
            first, last = reschedule_window()
            slots = AvailabilityService(self.db).list_slots(
                appointment.professional_id,
                first,
                last,
                exclude_appointment_id=appointment.id,
            )

        return {
            "appointment": appointment,
            "expires_at": record.expires_at,
            "can_move": can_move,
            "slots": slots,
        }

    def confirm(self, token: str) -> Appointment:
        """SCHEDULED → CONFIRMED; confirming twice is a no-op"""
        record = self._load(token)
        appointment = record.appointment
        if appointment.appointment_date <= local_today():
            raise NotEligibleError("Only upcoming appointments can be confirmed")

        if appointment.status == AppointmentStatus.CONFIRMED.value:
            return appointment
        if appointment.status != AppointmentStatus.SCHEDULED.value:
            raise NotEligibleError("Only scheduled appointments can be confirmed")

        appointment.status = AppointmentStatus.CONFIRMED.value
        audit.record_event(
            self.db,
            "APPOINTMENT_ATTENDANCE_CONFIRMED",
            audit.ACTOR_PATIENT_LINK,
            resource_type="APPOINTMENT",
            resource_id=appointment.id,
            professional_id=appointment.professional_id,
        )
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"👍 Attendance confirmed for appointment {appointment.id}")
        return appointment

    def move(self, token: str, new_date: date, new_start: time) -> Appointment:
        """
        Move the appointment to another free slot and retire the token.

        The same row is updated (no new appointment) and its status is reset
        to SCHEDULED.
        """
        record = self._load(token)
        appointment = record.appointment
        if not is_reschedulable(appointment):
            raise NotEligibleError()
        if record.used_at is not None:
            raise NotEligibleError("This link was already used to reschedule")

        if not is_whole_minute(new_start):
            raise ValidationError("start_time must be a whole minute")

        first, last = reschedule_window()
        if not first <= new_date <= last:
            raise ConflictError("Requested date is outside the reschedule window")

        try:
            self.appointments.lock_professional(self.db, appointment.professional_id)

            template = self.availability.get_template(
                self.db, appointment.professional_id, new_date.weekday()
            )
            booked = self.appointments.list_occupying(
                self.db, appointment.professional_id, new_date, new_date
            )
            slot = next(
                (
                    s
                    for s in generate_slots(template, new_date, booked, appointment.id)
                    if s.start == new_start
                ),
                None,
            )
            if slot is None:
                raise ConflictError()

            previous = {
                "date": appointment.appointment_date.isoformat(),
                "start_time": appointment.start_time.strftime("%H:%M"),
            }
            appointment.appointment_date = slot.date
            appointment.start_time = slot.start
            appointment.end_time = slot.end
            appointment.status = AppointmentStatus.SCHEDULED.value
            self.repo.mark_used(self.db, record, utcnow())

            audit.record_event(
                self.db,
                "APPOINTMENT_RESCHEDULED",
                audit.ACTOR_PATIENT_LINK,
                resource_type="APPOINTMENT",
                resource_id=appointment.id,
                professional_id=appointment.professional_id,
                metadata={"from": previous, "to": slot.to_dict()},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            f"🔁 Appointment {appointment.id} moved to {slot.date} {slot.start.strftime('%H:%M')}"
        )
        return appointment
