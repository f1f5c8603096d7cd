"""Availability router - FastAPI endpoints for weekly templates and free slots"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    CopyDayRequest,
    SlotListResponse,
    SlotResponse,
    WeekTemplateRequest,
    WeekTemplateResponse,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/professionals", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.get("/{professional_id}/availability", response_model=WeekTemplateResponse)
async def get_availability(
    professional_id: int,
    service: AvailabilityService = Depends(get_availability_service),
):
    """All seven weekdays; unset days come back disabled with defaults"""
    return WeekTemplateResponse(
        professional_id=professional_id, days=service.get_week(professional_id)
    )


@router.put("/{professional_id}/availability", response_model=WeekTemplateResponse)
async def put_availability(
    professional_id: int,
    data: WeekTemplateRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Replace the whole week"""
    return WeekTemplateResponse(
        professional_id=professional_id, days=service.put_week(professional_id, data.days)
    )


@router.post("/{professional_id}/availability/copy", response_model=WeekTemplateResponse)
async def copy_availability_day(
    professional_id: int,
    data: CopyDayRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    days = service.copy_day(professional_id, data.from_day, data.to_day)
    return WeekTemplateResponse(professional_id=professional_id, days=days)


@router.get("/{professional_id}/slots", response_model=SlotListResponse)
async def list_slots(
    professional_id: int,
    date_from: date = Query(...),
    date_to: date = Query(...),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Free slots in [date_from, date_to]"""
    slots = service.list_slots(professional_id, date_from, date_to)
    return SlotListResponse(
        slots=[SlotResponse(date=s.date, start_time=s.start, end_time=s.end) for s in slots],
        configured_days=service.configured_days(professional_id),
    )
