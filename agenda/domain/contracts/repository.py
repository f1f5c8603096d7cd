"""Contract repository - Database operations for contracts and their appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Appointment, Contract


class ContractRepository:
    """Repository for contract database operations"""

    @staticmethod
    def get_contract_by_id(db: Session, contract_id: int) -> Optional[Contract]:
        """Get a contract with its schedule rules"""
        return (
            db.query(Contract)
            .options(selectinload(Contract.schedule_rules))
            .filter(Contract.id == contract_id)
            .first()
        )

    @staticmethod
    def update_status(db: Session, contract: Contract, status: str) -> Contract:
        """Stage a status change (committed by the caller)"""
        contract.status = status
        db.flush()
        return contract

    @staticmethod
    def set_end_date(db: Session, contract: Contract, end_date: date) -> Contract:
        contract.end_date = end_date
        db.flush()
        return contract

    @staticmethod
    def appointments_from_date(
        db: Session, contract_id: int, from_date: date, statuses: list[str]
    ) -> list[Appointment]:
        """Appointments of the contract dated on/after from_date in the given statuses"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.contract_id == contract_id,
                Appointment.appointment_date >= from_date,
                Appointment.status.in_(statuses),
            )
            .order_by(Appointment.appointment_date, Appointment.start_time)
            .all()
        )

    @staticmethod
    def bulk_set_status(db: Session, appointments: list[Appointment], status: str) -> list[int]:
        """Set status on each appointment; returns affected IDs"""
        for appointment in appointments:
            appointment.status = status
        db.flush()
        return [a.id for a in appointments]
