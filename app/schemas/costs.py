"""
Cost Schemas
============

Request schemas for cost items and budget plans.
"""

from datetime import date
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from app.enums import CostCategory

BudgetPeriod = Literal["monthly", "quarterly", "yearly"]


class CostItemRequest(BaseModel):
    farm_id: int = Field(..., ge=1)
    category: CostCategory
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., ge=0)
    date: date
    currency: str = Field(default="KES", min_length=3, max_length=3)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit_cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)


class BudgetPlanRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    total_budget: float = Field(..., ge=0)
    period: BudgetPeriod
    start_date: date
    end_date: date
    categories: Dict[CostCategory, float] = Field(default_factory=dict)
    is_active: bool = True


class BudgetPlanUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    total_budget: Optional[float] = Field(default=None, ge=0)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    categories: Optional[Dict[CostCategory, float]] = None
    is_active: Optional[bool] = None
