"""
Schemas Module
==============

This module provides Pydantic models for request validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.community import CreateCommentRequest, CreatePostRequest
from app.schemas.costs import BudgetPlanRequest, BudgetPlanUpdateRequest, CostItemRequest
from app.schemas.farms import (
    CreateCropRequest,
    CreateFarmRequest,
    CreateProfileRequest,
    UpdateCropRequest,
    UpdateFarmRequest,
    UpdateProfileRequest,
)
from app.schemas.irrigation import CompleteIrrigationRequest, CreateScheduleRequest
from app.schemas.soil import SoilReadingRequest

__all__ = [
    "BudgetPlanRequest",
    "BudgetPlanUpdateRequest",
    "CompleteIrrigationRequest",
    "CostItemRequest",
    "CreateCommentRequest",
    "CreateCropRequest",
    "CreateFarmRequest",
    "CreatePostRequest",
    "CreateProfileRequest",
    "CreateScheduleRequest",
    "SoilReadingRequest",
    "UpdateCropRequest",
    "UpdateFarmRequest",
    "UpdateProfileRequest",
]
