"""Appointment service - Booking ledger business logic"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable

from sqlalchemy.orm import Session

from ... import audit
from ...exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ...models import Appointment, Contract
from ...utils.clock import add_minutes, is_whole_minute, to_minutes
from ...utils.sanitization import sanitize_notes
from ..availability.repository import AvailabilityRepository
from ..availability.slot_generator import session_fits
from ..contracts.repository import ContractRepository
from .repository import AppointmentRepository
from .schemas import AppointmentPatch
from .status import AppointmentStatus, can_transition, is_occupying, is_terminal

logger = logging.getLogger(__name__)

CONFLICT = "conflict"


@dataclass
class RejectedRequest:
    appointment_date: date
    start_time: time
    reason: str


@dataclass
class BookingResult:
    """
    Outcome of a best-effort batch booking.

    ``created`` counts the appointments written; colliding requests are listed
    in ``rejected`` instead of failing the batch.
    """

    created: int = 0
    appointment_ids: list[int] = field(default_factory=list)
    rejected: list[RejectedRequest] = field(default_factory=list)


class AppointmentService:
    """Service layer for the booking ledger"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.availability = AvailabilityRepository()
        self.contracts = ContractRepository()

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_appointments(
        self,
        professional_id: int,
        date_from: date,
        date_to: date,
        include_inactive: bool = False,
    ) -> list[Appointment]:
        if date_to < date_from:
            raise ValidationError("date_to must be on or after date_from")
        return self.repo.list_range(
            self.db, professional_id, date_from, date_to, include_inactive
        )

    def _bookable_contract(
        self, professional_id: int, contract_id: int, status: AppointmentStatus
    ) -> Contract:
        contract = self.contracts.get_contract_by_id(self.db, contract_id)
        if not contract:
            raise NotFoundError("Contract not found")
        if contract.professional_id != professional_id:
            raise ValidationError("Contract belongs to another professional")

        # Pre-scheduling happens while the contract waits for signature
        allowed = ("SENT", "SIGNED") if status == AppointmentStatus.PRE_SCHEDULED else ("SIGNED",)
        if contract.status not in allowed:
            raise ValidationError("Contract must be signed to add appointments")
        return contract

    def create_appointments(
        self,
        professional_id: int,
        contract_id: int,
        requests: Iterable[tuple[date, time]],
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        actor_type: str = audit.ACTOR_PROFESSIONAL,
        commit: bool = True,
    ) -> BookingResult:
        """
        Book (date, start) requests against a contract.

        Structural problems reject the whole call before anything is written:
        unknown or unsigned contract, empty batch, a weekday without an enabled
        template, or a start whose session leaves the working window or hits
        lunch. Beyond that each request is booked on its own and collisions
        with occupying appointments (earlier requests of the same batch
        included) are skipped and reported.
        """
        requests = list(requests)
        if not requests:
            raise ValidationError("At least one slot is required")

        contract = self._bookable_contract(professional_id, contract_id, status)

        # Lock before reading templates/bookings so check-then-write is atomic
        if not self.repo.lock_professional(self.db, professional_id):
            raise NotFoundError("Professional not found")

        templates = self.availability.templates_by_weekday(self.db, professional_id)
        planned = []
        for on_date, start in requests:
            template = templates.get(on_date.weekday())
            if template is None or not template.enabled:
                raise ValidationError(
                    f"{on_date.isoformat()}: no working hours configured for that weekday"
                )
            if not is_whole_minute(start):
                raise ValidationError(
                    f"{on_date.isoformat()} {start.isoformat()}: start_time must be a whole minute"
                )
            end = session_fits(template, start)
            if end is None:
                raise ValidationError(
                    f"{on_date.isoformat()} {start.strftime('%H:%M')}: "
                    "outside working hours or inside lunch break"
                )
            planned.append((on_date, start, end))

        result = BookingResult()
        try:
            for on_date, start, end in planned:
                if self.repo.find_overlap(self.db, professional_id, on_date, start, end):
                    result.rejected.append(RejectedRequest(on_date, start, CONFLICT))
                    continue

                appointment = self.repo.create(
                    self.db,
                    professional_id=professional_id,
                    patient_id=contract.patient_id,
                    contract_id=contract.id,
                    appointment_date=on_date,
                    start_time=start,
                    end_time=end,
                    status=AppointmentStatus(status).value,
                )
                result.created += 1
                result.appointment_ids.append(appointment.id)

            audit.record_event(
                self.db,
                "APPOINTMENTS_CREATED_BATCH",
                actor_type,
                professional_id=professional_id,
                metadata={
                    "contract_id": contract.id,
                    "affected_ids": result.appointment_ids,
                    "count": result.created,
                    "skipped": len(result.rejected),
                },
            )
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"📅 Booked {result.created}/{len(planned)} appointment(s) for contract {contract.id}"
            f" (skipped {len(result.rejected)})"
        )
        return result

    def edit(self, appointment_id: int, patch: AppointmentPatch) -> Appointment:
        """
        Move and/or re-status an appointment (operator override).

        The overlap check is re-run against the professional's other occupying
        appointments whenever date or time changes.
        """
        appointment = self.get_appointment(appointment_id)
        # A null notes value clears the notes; other null fields mean "unchanged"
        updates = {
            k: v
            for k, v in patch.model_dump(exclude_unset=True).items()
            if v is not None or k == "notes"
        }

        moves = any(k in updates for k in ("appointment_date", "start_time", "end_time"))
        new_status = updates.get("status")

        if is_terminal(appointment.status) and (
            moves or (new_status is not None and new_status != appointment.status)
        ):
            raise InvalidTransitionError(
                f"Appointment is {appointment.status}; date, time and status are final"
            )
        if new_status is not None and not can_transition(appointment.status, new_status):
            raise InvalidTransitionError(
                f"Cannot change status from {appointment.status} to {AppointmentStatus(new_status).value}"
            )

        try:
            if moves:
                self.repo.lock_professional(self.db, appointment.professional_id)
                new_date, new_start, new_end = self._resolve_interval(appointment, updates)

                target_status = new_status or appointment.status
                if is_occupying(target_status) and self.repo.find_overlap(
                    self.db,
                    appointment.professional_id,
                    new_date,
                    new_start,
                    new_end,
                    exclude_id=appointment.id,
                ):
                    raise ConflictError("Another appointment already occupies that time")

                appointment.appointment_date = new_date
                appointment.start_time = new_start
                appointment.end_time = new_end

            if new_status is not None:
                appointment.status = AppointmentStatus(new_status).value
            if "notes" in updates:
                try:
                    appointment.notes = sanitize_notes(updates["notes"])
                except ValueError as e:
                    raise ValidationError(str(e))

            audit.record_event(
                self.db,
                "APPOINTMENT_UPDATED",
                audit.ACTOR_PROFESSIONAL,
                resource_type="APPOINTMENT",
                resource_id=appointment.id,
                professional_id=appointment.professional_id,
                metadata={"changed_fields": sorted(updates.keys())},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(f"✏️ Appointment {appointment.id} updated: {sorted(updates.keys())}")
        return appointment

    @staticmethod
    def _resolve_interval(appointment: Appointment, updates: dict):
        new_date = updates.get("appointment_date", appointment.appointment_date)
        new_start = updates.get("start_time", appointment.start_time)

        if "end_time" in updates:
            new_end = updates["end_time"]
        else:
            # Moving only the start keeps the session length
            duration = to_minutes(appointment.end_time) - to_minutes(appointment.start_time)
            new_end = add_minutes(new_start, duration)
            if new_end is None:
                raise ValidationError("Appointment would end after midnight")

        if not (is_whole_minute(new_start) and is_whole_minute(new_end)):
            raise ValidationError("start_time and end_time must be whole minutes")
        if new_start >= new_end:
            raise ValidationError("start_time must be before end_time")
        return new_date, new_start, new_end

    def cancel(self, appointment_id: int) -> Appointment:
        """Cancel by status transition; the row is never deleted"""
        appointment = self.get_appointment(appointment_id)

        if appointment.status == AppointmentStatus.CANCELLED.value:
            return appointment
        if is_terminal(appointment.status):
            raise InvalidTransitionError(f"Appointment is {appointment.status} and cannot be cancelled")

        appointment.status = AppointmentStatus.CANCELLED.value
        audit.record_event(
            self.db,
            "APPOINTMENT_CANCELLED",
            audit.ACTOR_PROFESSIONAL,
            resource_type="APPOINTMENT",
            resource_id=appointment.id,
            professional_id=appointment.professional_id,
        )
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"🚫 Appointment {appointment.id} cancelled")
        return appointment
