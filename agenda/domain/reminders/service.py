"""Reminder dispatcher - Daily WhatsApp reminders for tomorrow's appointments"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ... import audit
from ...config import APP_PUBLIC_URL, REMINDER_SKIP_ALREADY_SENT
from ...exceptions import NotEligibleError
from ...models import Appointment
from ...utils.sanitization import normalize_phone
from ..appointments.repository import AppointmentRepository
from ..appointments.status import REMINDABLE_STATUSES
from ..reschedule.service import RescheduleService, build_reschedule_url

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    sent: int = 0
    skipped: int = 0


class ReminderDispatcher:
    """
    Sends one reminder per appointment dated the day after ``as_of_date``.

    ``sender`` is any object with an async
    ``send_reminder(phone, patient_name, date_str, time_str, reschedule_url)``
    returning ``(success, error)``. Without a sender every candidate counts as
    skipped.
    """

    def __init__(
        self,
        db: Session,
        sender=None,
        app_public_url: Optional[str] = APP_PUBLIC_URL,
        skip_already_sent: bool = REMINDER_SKIP_ALREADY_SENT,
    ):
        self.db = db
        self.sender = sender
        self.app_public_url = app_public_url
        self.skip_already_sent = skip_already_sent
        self.repo = AppointmentRepository()
        self.tokens = RescheduleService(db)

    def _reschedule_url(self, appointment: Appointment) -> Optional[str]:
        if not self.app_public_url:
            return None
        try:
            record = self.tokens.issue(appointment.id, commit=False)
        except NotEligibleError:
            return None
        return build_reschedule_url(self.app_public_url, record.token)

    async def dispatch(self, as_of_date: date, professional_id: Optional[int] = None) -> DispatchResult:
        target = as_of_date + timedelta(days=1)
        appointments = self.repo.list_for_reminder(
            self.db, target, [s.value for s in REMINDABLE_STATUSES], professional_id
        )
        result = DispatchResult()

        if self.sender is None:
            logger.warning(
                f"⚠️ WhatsApp not configured, would send {len(appointments)} reminder(s) for {target}"
            )
            result.skipped = len(appointments)
            return result

        date_str = target.strftime("%d/%m/%Y")
        for appointment in appointments:
            if self.skip_already_sent and appointment.last_reminder_sent_on == as_of_date:
                result.skipped += 1
                continue

            phone = normalize_phone(appointment.patient.phone if appointment.patient else None)
            if not phone:
                logger.info(f"No contact phone for appointment {appointment.id}, skipping")
                result.skipped += 1
                continue

            reschedule_url = self._reschedule_url(appointment)
            try:
                success, error = await self.sender.send_reminder(
                    phone,
                    appointment.patient.full_name,
                    date_str,
                    appointment.start_time.strftime("%H:%M"),
                    reschedule_url,
                )
            except Exception as e:
                success, error = False, str(e)

            if not success:
                logger.error(f"❌ Reminder failed for appointment {appointment.id}: {error}")
                # Drop the token issued for this reminder
                self.db.rollback()
                result.skipped += 1
                continue

            appointment.last_reminder_sent_on = as_of_date
            audit.record_event(
                self.db,
                "APPOINTMENT_REMINDER_SENT",
                audit.ACTOR_SYSTEM,
                resource_type="APPOINTMENT",
                resource_id=appointment.id,
                professional_id=appointment.professional_id,
                metadata={"appointment_id": appointment.id, "with_link": bool(reschedule_url)},
            )
            self.db.commit()
            result.sent += 1

        logger.info(f"📨 Reminders for {target}: sent={result.sent} skipped={result.skipped}")
        return result
