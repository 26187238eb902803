"""
Farm Schemas
============

Request schemas for farmer profiles, farms and crops.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from app.enums import SoilType, WaterRequirement


class CreateProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=32, description="E.164 number for SMS reminders")


class CreateFarmRequest(BaseModel):
    farmer_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    size: Optional[float] = Field(default=None, gt=0, description="Size in acres")
    soil_type: Optional[SoilType] = None


class CreateCropRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    area: Optional[float] = Field(default=None, gt=0, description="Planted area in acres")
    planted_date: Optional[date] = None
    expected_harvest: Optional[date] = None
    water_requirement: WaterRequirement = WaterRequirement.MEDIUM


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=32)


class UpdateFarmRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    size: Optional[float] = Field(default=None, gt=0)
    soil_type: Optional[SoilType] = None


class UpdateCropRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    area: Optional[float] = Field(default=None, gt=0)
    planted_date: Optional[date] = None
    expected_harvest: Optional[date] = None
    water_requirement: Optional[WaterRequirement] = None
