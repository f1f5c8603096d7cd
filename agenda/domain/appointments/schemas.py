"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field

from .status import AppointmentStatus


class SlotRequest(BaseModel):
    """One (date, start) pair to book"""

    appointment_date: date
    start_time: time


class CreateAppointmentsRequest(BaseModel):
    contract_id: int
    slots: list[SlotRequest] = Field(min_length=1)


class RejectedSlot(BaseModel):
    appointment_date: date
    start_time: time
    reason: str

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    created: int
    appointment_ids: list[int]
    rejected: list[RejectedSlot]


class AppointmentPatch(BaseModel):
    """Partial update; omitted or null fields are left untouched, except notes (null clears)"""

    appointment_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: int
    public_id: str
    professional_id: int
    patient_id: int
    patient_name: Optional[str] = None
    contract_id: int
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]


class RescheduleTokenResponse(BaseModel):
    token: str
    expires_at: str
    reschedule_url: Optional[str] = None
