"""
Soil Moisture Schemas
=====================
"""

from typing import Optional

from pydantic import BaseModel, Field


class SoilReadingRequest(BaseModel):
    """Request schema for recording a soil moisture reading."""
    farm_id: int = Field(..., ge=1)
    crop: str = Field(..., min_length=1, max_length=100)
    moisture_level: float = Field(..., ge=0, le=100, description="Volumetric moisture (%)")
    temperature: Optional[float] = Field(default=None, description="Soil temperature (C)")
    ph: Optional[float] = Field(default=None, ge=0, le=14)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    device_id: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
