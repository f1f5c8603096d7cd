"""Contract router - FastAPI endpoints for contract-driven scheduling"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..appointments.router import booking_response
from ..appointments.schemas import BookingResponse, RejectedSlot
from .schemas import (
    ActivationResponse,
    EndContractRequest,
    EndContractResponse,
    RecurrenceItem,
    RecurrenceResponse,
)
from .service import ContractService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contracts"])


def get_contract_service(db: Session = Depends(get_db)) -> ContractService:
    """Dependency injection for ContractService"""
    return ContractService(db)


@router.get("/{contract_id}/recurrence", response_model=RecurrenceResponse)
async def preview_recurrence(
    contract_id: int,
    service: ContractService = Depends(get_contract_service),
):
    """Dates the contract's rules expand to (no availability checks)"""
    items = service.preview_recurrence(contract_id)
    return RecurrenceResponse(
        contract_id=contract_id,
        items=[RecurrenceItem(appointment_date=d, start_time=t) for d, t in items],
    )


@router.post("/{contract_id}/pre-schedule", response_model=BookingResponse)
async def pre_schedule(
    contract_id: int,
    service: ContractService = Depends(get_contract_service),
):
    """Hold the contract's recurring slots as PRE_SCHEDULED"""
    return booking_response(service.pre_schedule(contract_id))


@router.post("/{contract_id}/activate", response_model=ActivationResponse)
async def activate_contract(
    contract_id: int,
    service: ContractService = Depends(get_contract_service),
):
    """Contract signed: promote held slots or book the rules"""
    result = service.activate(contract_id)
    result["rejected"] = [RejectedSlot.model_validate(r) for r in result["rejected"]]
    return ActivationResponse(**result)


@router.post("/{contract_id}/end", response_model=EndContractResponse)
async def end_contract(
    contract_id: int,
    data: Optional[EndContractRequest] = Body(None),
    service: ContractService = Depends(get_contract_service),
):
    """Terminate the contract and end its remaining appointments"""
    end_date = data.end_date if data else None
    return EndContractResponse(**service.end_contract(contract_id, end_date))
