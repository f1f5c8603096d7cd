"""Contract domain schemas - Pydantic models for validation"""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel

from ..appointments.schemas import RejectedSlot


class RecurrenceItem(BaseModel):
    appointment_date: date
    start_time: time


class RecurrenceResponse(BaseModel):
    """Dates a contract's rules expand to; nothing is booked"""

    contract_id: int
    items: list[RecurrenceItem]


class ActivationResponse(BaseModel):
    contract_id: int
    status: str
    promoted: int
    created: int
    appointment_ids: list[int]
    rejected: list[RejectedSlot]


class EndContractRequest(BaseModel):
    """Schema for terminating a contract; end_date defaults to today"""

    end_date: Optional[date] = None


class EndContractResponse(BaseModel):
    contract_id: int
    status: str
    end_date: date
    series_ended: int
    cancelled: int
