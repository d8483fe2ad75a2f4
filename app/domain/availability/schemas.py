"""Availability domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel


class AvailabilityRuleInput(BaseModel):
    day_of_week: int  # 0 = Sunday ... 6 = Saturday
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    is_active: bool = True


class AvailabilitySave(BaseModel):
    """Full weekly schedule; replaces whatever was saved before"""

    rules: list[AvailabilityRuleInput]


class AvailabilityRuleResponse(BaseModel):
    id: int
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool

    class Config:
        from_attributes = True


class AvailableToggleResponse(BaseModel):
    therapist_id: int
    is_available: bool


class BlockedPeriodCreate(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = None


class BlockedPeriodResponse(BaseModel):
    id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
