"""Appointment repository - Database operations for the booking ledger"""

from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Professional
from .status import OCCUPYING_STATUSES, TERMINAL_STATUSES

_OCCUPYING = [s.value for s in OCCUPYING_STATUSES]
_TERMINAL = [s.value for s in TERMINAL_STATUSES]


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def lock_professional(db: Session, professional_id: int) -> Optional[Professional]:
        """
        Take a row lock on the professional (SELECT ... FOR UPDATE).

        Every create/move for that professional goes through this lock before
        its overlap check, so concurrent writers serialize per professional.
        """
        return (
            db.query(Professional)
            .filter(Professional.id == professional_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def list_range(
        db: Session,
        professional_id: int,
        date_from: date,
        date_to: date,
        include_inactive: bool = False,
    ) -> list[Appointment]:
        """Appointments in [date_from, date_to]; terminal ones only on request"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(
                Appointment.professional_id == professional_id,
                Appointment.appointment_date >= date_from,
                Appointment.appointment_date <= date_to,
            )
        )
        if not include_inactive:
            query = query.filter(Appointment.status.notin_(_TERMINAL))

        return query.order_by(Appointment.appointment_date, Appointment.start_time).all()

    @staticmethod
    def list_occupying(
        db: Session, professional_id: int, date_from: date, date_to: date
    ) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.professional_id == professional_id,
                Appointment.appointment_date >= date_from,
                Appointment.appointment_date <= date_to,
                Appointment.status.in_(_OCCUPYING),
            )
            .all()
        )

    @staticmethod
    def find_overlap(
        db: Session,
        professional_id: int,
        on_date: date,
        start: time,
        end: time,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """First occupying appointment intersecting [start, end) on that date"""
        query = db.query(Appointment).filter(
            Appointment.professional_id == professional_id,
            Appointment.appointment_date == on_date,
            Appointment.status.in_(_OCCUPYING),
            Appointment.start_time < end,
            Appointment.end_time > start,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        """Stage a new appointment (flushed, not committed)"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def list_by_contract(
        db: Session, contract_id: int, statuses: Optional[list[str]] = None
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(Appointment.contract_id == contract_id)
        if statuses is not None:
            query = query.filter(Appointment.status.in_(statuses))
        return query.order_by(Appointment.appointment_date, Appointment.start_time).all()

    @staticmethod
    def list_for_reminder(
        db: Session, on_date: date, statuses: list[str], professional_id: Optional[int] = None
    ) -> list[Appointment]:
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(Appointment.appointment_date == on_date, Appointment.status.in_(statuses))
        )
        if professional_id is not None:
            query = query.filter(Appointment.professional_id == professional_id)
        return query.order_by(Appointment.start_time, Appointment.id).all()
