"""Reschedule token repository - Database operations for reschedule links"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, RescheduleToken


class RescheduleTokenRepository:
    """Repository for reschedule token database operations"""

    @staticmethod
    def create(
        db: Session, appointment_id: int, token: str, issued_at: datetime, expires_at: datetime
    ) -> RescheduleToken:
        record = RescheduleToken(
            token=token,
            appointment_id=appointment_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[RescheduleToken]:
        """Token with its appointment (and the appointment's patient) loaded"""
        return (
            db.query(RescheduleToken)
            .options(joinedload(RescheduleToken.appointment).joinedload(Appointment.patient))
            .filter(RescheduleToken.token == token)
            .first()
        )

    @staticmethod
    def mark_used(db: Session, record: RescheduleToken, used_at: datetime) -> RescheduleToken:
        record.used_at = used_at
        db.flush()
        return record
