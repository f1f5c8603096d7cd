"""Availability domain schemas - Pydantic models for validation"""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field


class DayTemplate(BaseModel):
    """Working-hours template for one weekday (0=Monday .. 6=Sunday)"""

    day_of_week: int = Field(ge=0, le=6)
    enabled: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    session_minutes: int = 50
    buffer_minutes: int = 10
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None

    class Config:
        from_attributes = True


class WeekTemplateRequest(BaseModel):
    days: list[DayTemplate]


class WeekTemplateResponse(BaseModel):
    professional_id: int
    days: list[DayTemplate]


class CopyDayRequest(BaseModel):
    from_day: int = Field(ge=0, le=6)
    to_day: int = Field(ge=0, le=6)


class SlotResponse(BaseModel):
    date: date
    start_time: time
    end_time: time


class SlotListResponse(BaseModel):
    slots: list[SlotResponse]
    configured_days: list[int]
