"""
Irrigation Schemas
==================

Request schemas for irrigation schedule and completion endpoints.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.time import parse_time_of_day


class CreateScheduleRequest(BaseModel):
    """Request schema for creating an irrigation schedule."""
    farm_id: int = Field(..., ge=1, description="Farm identifier")
    crop_id: int = Field(..., ge=1, description="Crop identifier")
    frequency: int = Field(..., ge=1, le=365, description="Days between irrigations")
    duration: int = Field(..., ge=1, le=1440, description="Minutes per irrigation")
    time_of_day: str = Field(..., description="Local time of day, HH:MM")
    start_date: Optional[date] = Field(default=None, description="First irrigation day (default today)")

    @field_validator("time_of_day")
    @classmethod
    def validate_time_of_day(cls, v: str) -> str:
        parse_time_of_day(v)
        return v.strip()


class CompleteIrrigationRequest(BaseModel):
    """Request schema for marking a scheduled irrigation as done."""
    water_used: float = Field(..., gt=0, description="Water used (litres)")
    notes: Optional[str] = Field(default=None, max_length=1000, description="Optional notes")
