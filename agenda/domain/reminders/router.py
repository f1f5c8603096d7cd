"""Reminder router - Trigger endpoint for the daily reminder sweep"""

import hmac
import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...config import REMINDER_API_KEY
from ...database import get_db
from ...services.whatsapp_service import default_sender
from ...utils.clock import local_today
from .service import ReminderDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reminders", tags=["Reminders"])


class DispatchRequest(BaseModel):
    as_of_date: Optional[date] = None
    professional_id: Optional[int] = None


class DispatchResponse(BaseModel):
    target_date: date
    sent: int
    skipped: int


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Require X-API-Key when REMINDER_API_KEY is configured"""
    if not REMINDER_API_KEY:
        return
    if not x_api_key or not hmac.compare_digest(x_api_key, REMINDER_API_KEY):
        logger.warning("🚫 Reminder dispatch rejected: bad API key")
        raise HTTPException(status_code=401, detail="Invalid API key")


def get_reminder_sender():
    """Dependency for the reminder sender (None when Twilio is not configured)"""
    return default_sender()


@router.post("/dispatch", response_model=DispatchResponse, dependencies=[Depends(verify_api_key)])
async def dispatch_reminders(
    data: Optional[DispatchRequest] = Body(None),
    db: Session = Depends(get_db),
    sender=Depends(get_reminder_sender),
):
    """Send reminders for appointments on the day after as_of_date (default: today)"""
    data = data or DispatchRequest()
    as_of_date = data.as_of_date or local_today()

    result = await ReminderDispatcher(db, sender).dispatch(as_of_date, data.professional_id)
    return DispatchResponse(
        target_date=as_of_date + timedelta(days=1),
        sent=result.sent,
        skipped=result.skipped,
    )
