"""Reschedule router - Public endpoints behind the reschedule link (no auth)"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..availability.schemas import SlotResponse
from .schemas import AppointmentSummary, MoveRequest, ResolveResponse
from .service import RescheduleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reschedule", tags=["Reschedule"])


def get_reschedule_service(db: Session = Depends(get_db)) -> RescheduleService:
    """Dependency injection for RescheduleService"""
    return RescheduleService(db)


@router.get("/{token}", response_model=ResolveResponse)
async def resolve_token(
    token: str,
    service: RescheduleService = Depends(get_reschedule_service),
):
    """Appointment summary and free slots for the link holder"""
    data = service.resolve(token)
    return ResolveResponse(
        appointment=AppointmentSummary.model_validate(data["appointment"]),
        expires_at=data["expires_at"],
        can_move=data["can_move"],
        slots=[
            SlotResponse(date=s.date, start_time=s.start, end_time=s.end) for s in data["slots"]
        ],
    )


@router.post("/{token}/confirm", response_model=AppointmentSummary)
async def confirm_attendance(
    token: str,
    service: RescheduleService = Depends(get_reschedule_service),
):
    return AppointmentSummary.model_validate(service.confirm(token))


@router.post("/{token}/move", response_model=AppointmentSummary)
async def move_appointment(
    token: str,
    data: MoveRequest,
    service: RescheduleService = Depends(get_reschedule_service),
):
    """Move to one of the offered slots; the link cannot move again afterwards"""
    appointment = service.move(token, data.appointment_date, data.start_time)
    return AppointmentSummary.model_validate(appointment)
