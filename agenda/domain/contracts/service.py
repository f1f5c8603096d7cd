"""Contract service - Recurrence and contract lifecycle hooks for scheduling"""

import logging
from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session

from ... import audit
from ...exceptions import NotFoundError, ValidationError
from ...models import Contract
from ...utils.clock import local_today, local_tomorrow, utcnow
from ..appointments.service import AppointmentService, BookingResult
from ..appointments.status import AppointmentStatus
from .recurrence import expand
from .repository import ContractRepository

logger = logging.getLogger(__name__)

CONTRACT_SENT = "SENT"
CONTRACT_SIGNED = "SIGNED"
CONTRACT_ENDED = "ENDED"


class ContractService:
    """Service layer for contract-driven scheduling"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContractRepository()
        self.ledger = AppointmentService(db)

    def get_contract(self, contract_id: int) -> Contract:
        contract = self.repo.get_contract_by_id(self.db, contract_id)
        if not contract:
            raise NotFoundError("Contract not found")
        return contract

    def preview_recurrence(self, contract_id: int) -> list[tuple[date, time]]:
        """Expand the contract's rules without touching the ledger"""
        contract = self.get_contract(contract_id)
        return self._expand(contract)

    @staticmethod
    def _expand(contract: Contract) -> list[tuple[date, time]]:
        start_date = contract.start_date or local_tomorrow()
        return expand(
            contract.schedule_rules,
            start_date,
            end_date=contract.end_date,
            count=contract.num_appointments,
        )

    def _requests_or_fail(self, contract: Contract) -> list[tuple[date, time]]:
        if not contract.schedule_rules:
            raise ValidationError("Contract has no schedule rules")
        requests = self._expand(contract)
        if not requests:
            raise ValidationError("Contract schedule rules produce no dates")
        return requests

    def pre_schedule(self, contract_id: int) -> BookingResult:
        """
        Hold the contract's recurring slots while it waits for signature.

        Bookings are written as PRE_SCHEDULED; they occupy the calendar like
        any other booking and are promoted by ``activate``.
        """
        contract = self.get_contract(contract_id)
        if contract.status != CONTRACT_SENT:
            raise ValidationError("Only sent contracts can be pre-scheduled")

        result = self.ledger.create_appointments(
            contract.professional_id,
            contract.id,
            self._requests_or_fail(contract),
            status=AppointmentStatus.PRE_SCHEDULED,
            actor_type=audit.ACTOR_SYSTEM,
        )
        logger.info(
            f"📌 Contract {contract.id} pre-scheduled: {result.created} held, "
            f"{len(result.rejected)} conflicting"
        )
        return result

    def activate(self, contract_id: int) -> dict:
        """
        Mark the contract signed and put its appointments on the calendar.

        Held PRE_SCHEDULED appointments are promoted to SCHEDULED. When nothing
        was held the rules are booked directly.
        """
        contract = self.get_contract(contract_id)
        if contract.status not in (CONTRACT_SENT, CONTRACT_SIGNED):
            raise ValidationError(f"Contract in status {contract.status} cannot be activated")

        held = self.ledger.repo.list_by_contract(
            self.db, contract.id, [AppointmentStatus.PRE_SCHEDULED.value]
        )

        try:
            if contract.status != CONTRACT_SIGNED:
                contract.signed_at = utcnow()
                self.repo.update_status(self.db, contract, CONTRACT_SIGNED)

            promoted: list[int] = []
            booking: Optional[BookingResult] = None
            if held:
                promoted = self.repo.bulk_set_status(
                    self.db, held, AppointmentStatus.SCHEDULED.value
                )
                audit.record_event(
                    self.db,
                    "APPOINTMENTS_PROMOTED_BATCH",
                    audit.ACTOR_SYSTEM,
                    resource_type="CONTRACT",
                    resource_id=contract.id,
                    professional_id=contract.professional_id,
                    metadata={"affected_ids": promoted, "count": len(promoted)},
                )
            elif contract.schedule_rules:
                booking = self.ledger.create_appointments(
                    contract.professional_id,
                    contract.id,
                    self._requests_or_fail(contract),
                    actor_type=audit.ACTOR_SYSTEM,
                    commit=False,
                )

            audit.record_event(
                self.db,
                "CONTRACT_SIGNED",
                audit.ACTOR_SYSTEM,
                resource_type="CONTRACT",
                resource_id=contract.id,
                professional_id=contract.professional_id,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Contract {contract.id} activated: promoted={len(promoted)} "
            f"created={booking.created if booking else 0}"
        )
        return {
            "contract_id": contract.id,
            "status": contract.status,
            "promoted": len(promoted),
            "created": booking.created if booking else 0,
            "appointment_ids": promoted or (booking.appointment_ids if booking else []),
            "rejected": booking.rejected if booking else [],
        }

    def end_contract(self, contract_id: int, end_date: Optional[date] = None) -> dict:
        """
        Terminate a signed contract from ``end_date`` onwards.

        SCHEDULED and CONFIRMED appointments dated on or after ``end_date``
        become SERIES_ENDED; PRE_SCHEDULED leftovers in that range are
        cancelled. Earlier appointments are left alone.
        """
        contract = self.get_contract(contract_id)
        if contract.status != CONTRACT_SIGNED:
            raise ValidationError("Only signed contracts can be ended")

        end_date = end_date or local_today()

        try:
            ended_ids = self.repo.bulk_set_status(
                self.db,
                self.repo.appointments_from_date(
                    self.db,
                    contract.id,
                    end_date,
                    [AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value],
                ),
                AppointmentStatus.SERIES_ENDED.value,
            )
            cancelled_ids = self.repo.bulk_set_status(
                self.db,
                self.repo.appointments_from_date(
                    self.db, contract.id, end_date, [AppointmentStatus.PRE_SCHEDULED.value]
                ),
                AppointmentStatus.CANCELLED.value,
            )

            self.repo.set_end_date(self.db, contract, end_date)
            self.repo.update_status(self.db, contract, CONTRACT_ENDED)

            audit.record_event(
                self.db,
                "CONTRACT_ENDED",
                audit.ACTOR_PROFESSIONAL,
                resource_type="CONTRACT",
                resource_id=contract.id,
                professional_id=contract.professional_id,
                metadata={"end_date": end_date.isoformat()},
            )
            audit.record_event(
                self.db,
                "APPOINTMENTS_SERIES_ENDED_BATCH",
                audit.ACTOR_SYSTEM,
                resource_type="CONTRACT",
                resource_id=contract.id,
                professional_id=contract.professional_id,
                metadata={
                    "affected_ids": ended_ids,
                    "count": len(ended_ids),
                    "cancelled_ids": cancelled_ids,
                },
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"🏁 Contract {contract.id} ended on {end_date}: "
            f"{len(ended_ids)} series-ended, {len(cancelled_ids)} cancelled"
        )
        return {
            "contract_id": contract.id,
            "status": CONTRACT_ENDED,
            "end_date": end_date,
            "series_ended": len(ended_ids),
            "cancelled": len(cancelled_ids),
        }
