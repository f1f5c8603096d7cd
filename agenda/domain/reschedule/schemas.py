"""Reschedule domain schemas - Public payloads for the reschedule link"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel

from ..appointments.status import AppointmentStatus
from ..availability.schemas import SlotResponse


class AppointmentSummary(BaseModel):
    """What the link holder is allowed to see; no internal IDs"""

    public_id: str
    patient_name: Optional[str] = None
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus

    class Config:
        from_attributes = True


class ResolveResponse(BaseModel):
    appointment: AppointmentSummary
    expires_at: datetime
    can_move: bool
    slots: list[SlotResponse]


class MoveRequest(BaseModel):
    appointment_date: date
    start_time: time
