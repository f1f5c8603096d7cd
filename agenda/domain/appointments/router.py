"""Appointment router - FastAPI endpoints for the booking ledger"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...config import APP_PUBLIC_URL
from ...database import get_db
from ..reschedule.service import RescheduleService, build_reschedule_url
from .schemas import (
    AppointmentListResponse,
    AppointmentPatch,
    AppointmentResponse,
    BookingResponse,
    CreateAppointmentsRequest,
    RejectedSlot,
    RescheduleTokenResponse,
)
from .service import AppointmentService, BookingResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def booking_response(result: BookingResult) -> BookingResponse:
    return BookingResponse(
        created=result.created,
        appointment_ids=result.appointment_ids,
        rejected=[RejectedSlot.model_validate(r) for r in result.rejected],
    )


@router.get(
    "/professionals/{professional_id}/appointments", response_model=AppointmentListResponse
)
async def list_appointments(
    professional_id: int,
    date_from: date = Query(...),
    date_to: date = Query(...),
    include_inactive: bool = Query(False, description="Include cancelled/completed/ended"),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments = service.list_appointments(
        professional_id, date_from, date_to, include_inactive
    )
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )


@router.post("/professionals/{professional_id}/appointments", response_model=BookingResponse)
async def create_appointments(
    professional_id: int,
    data: CreateAppointmentsRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book a batch of slots; conflicting ones are reported, not fatal"""
    result = service.create_appointments(
        professional_id,
        data.contract_id,
        [(s.appointment_date, s.start_time) for s in data.slots],
    )
    return booking_response(result)


@router.patch("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentPatch,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Move, re-status or annotate an appointment"""
    return AppointmentResponse.model_validate(service.edit(appointment_id, data))


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.model_validate(service.cancel(appointment_id))


@router.post(
    "/appointments/{appointment_id}/reschedule-token", response_model=RescheduleTokenResponse
)
async def issue_reschedule_token(appointment_id: int, db: Session = Depends(get_db)):
    """Issue a reschedule link for an appointment"""
    record = RescheduleService(db).issue(appointment_id)
    return RescheduleTokenResponse(
        token=record.token,
        expires_at=record.expires_at.isoformat(),
        reschedule_url=build_reschedule_url(APP_PUBLIC_URL, record.token)
        if APP_PUBLIC_URL
        else None,
    )
