"""
Irrigation cost tracking and budgeting.

Cost items and budget plans are stored per farm as JSON documents. Summaries
cover a trailing window of days; the monthly trend always looks at the last
365 days and keeps the 12 most recent months.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.enums import CostCategory
from app.utils.persistent_store import KeyValueStore
from app.utils.time import Clock, coerce_datetime, utc_now

if TYPE_CHECKING:
    from infrastructure.database.repositories.farms import FarmRepository

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "aquawise_costs_"
DEFAULT_FARM_SIZE_ACRES = 2.0
BUDGET_PERIODS = ("monthly", "quarterly", "yearly")


class CostService:
    """Cost items, summaries, predictions and budget plans per farm."""

    def __init__(
        self,
        store: KeyValueStore,
        farm_repo: Optional["FarmRepository"] = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._farms = farm_repo
        self._clock = clock

    @staticmethod
    def _items_key(farm_id: Any) -> str:
        return f"{STORAGE_PREFIX}items_{farm_id}"

    @staticmethod
    def _budgets_key(farm_id: Any) -> str:
        return f"{STORAGE_PREFIX}budgets_{farm_id}"

    def _load(self, key: str) -> List[Dict[str, Any]]:
        data = self._store.load(key, [])
        if not isinstance(data, list):
            logger.warning("Ignoring malformed cost document %s", key)
            return []
        return [item for item in data if isinstance(item, dict)]

    # --- cost items ------------------------------------------------------------

    def add_cost_item(
        self,
        *,
        farm_id: int,
        category: str,
        description: str,
        amount: float,
        date: str,
        currency: str = "KES",
        quantity: Optional[float] = None,
        unit_cost: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            category = CostCategory(category).value
        except ValueError:
            raise ValidationError(f"Unknown cost category: {category}") from None
        if coerce_datetime(date) is None:
            raise ValidationError(f"Invalid cost date: {date}")
        if float(amount) < 0:
            raise ValidationError("amount must not be negative")

        item = {
            "id": uuid.uuid4().hex,
            "farm_id": farm_id,
            "category": category,
            "description": description,
            "amount": float(amount),
            "currency": currency,
            "date": date,
            "quantity": quantity,
            "unit_cost": unit_cost,
            "notes": notes,
        }
        key = self._items_key(farm_id)
        items = self._load(key)
        items.append(item)
        self._store.save(key, items)
        return item

    def get_cost_items(self, farm_id: int, days: int = 365) -> List[Dict[str, Any]]:
        cutoff = self._clock() - timedelta(days=days)
        result = []
        for item in self._load(self._items_key(farm_id)):
            when = coerce_datetime(item.get("date"))
            if when is not None and when >= cutoff:
                result.append(item)
        return result

    def delete_cost_item(self, farm_id: int, item_id: str) -> None:
        key = self._items_key(farm_id)
        items = self._load(key)
        remaining = [item for item in items if item.get("id") != item_id]
        if len(remaining) == len(items):
            raise NotFoundError(f"Cost item {item_id} not found")
        self._store.save(key, remaining)

    # --- analysis --------------------------------------------------------------

    def calculate_cost_summary(self, farm_id: int, days: int = 30) -> Dict[str, Any]:
        costs = self.get_cost_items(farm_id, days)
        total = sum(float(c.get("amount", 0)) for c in costs)

        breakdown: Dict[str, float] = defaultdict(float)
        for cost in costs:
            breakdown[cost["category"]] += float(cost.get("amount", 0))

        farm_size = self._farm_size(farm_id)
        return {
            "farm_id": farm_id,
            "days": days,
            "total_cost": total,
            "category_breakdown": dict(breakdown),
            "monthly_trend": self._monthly_trend(farm_id),
            "cost_per_acre": total / farm_size if farm_size > 0 else 0.0,
        }

    def _monthly_trend(self, farm_id: int) -> List[Dict[str, Any]]:
        monthly: Dict[str, float] = defaultdict(float)
        for cost in self.get_cost_items(farm_id, 365):
            month = coerce_datetime(cost["date"]).strftime("%Y-%m")
            monthly[month] += float(cost.get("amount", 0))
        return [{"month": m, "cost": monthly[m]} for m in sorted(monthly)][-12:]

    def _farm_size(self, farm_id: int) -> float:
        if self._farms is not None:
            farm = self._farms.get_farm(farm_id)
            if farm and farm.get("size"):
                return float(farm["size"])
        return DEFAULT_FARM_SIZE_ACRES

    def predict_monthly_costs(self, farm_id: int) -> float:
        """Average monthly spend over the last three months."""
        recent = self.get_cost_items(farm_id, 90)
        return sum(float(c.get("amount", 0)) for c in recent) / 3

    def calculate_roi(self, farm_id: int, revenue: float, days: int = 365) -> Dict[str, float]:
        total = sum(float(c.get("amount", 0)) for c in self.get_cost_items(farm_id, days))
        profit = float(revenue) - total
        return {
            "total_costs": total,
            "revenue": float(revenue),
            "profit": profit,
            "roi": (profit / total) * 100 if total > 0 else 0.0,
        }

    # --- budgets ---------------------------------------------------------------

    def create_budget_plan(
        self,
        *,
        farm_id: int,
        name: str,
        total_budget: float,
        period: str,
        start_date: str,
        end_date: str,
        categories: Optional[Dict[str, float]] = None,
        is_active: bool = True,
    ) -> Dict[str, Any]:
        if period not in BUDGET_PERIODS:
            raise ValidationError(f"period must be one of {', '.join(BUDGET_PERIODS)}")
        plan = {
            "id": uuid.uuid4().hex,
            "farm_id": farm_id,
            "name": name,
            "total_budget": float(total_budget),
            "period": period,
            "categories": dict(categories or {}),
            "start_date": start_date,
            "end_date": end_date,
            "is_active": bool(is_active),
        }
        key = self._budgets_key(farm_id)
        plans = self._load(key)
        plans.append(plan)
        self._store.save(key, plans)
        return plan

    def get_budget_plans(self, farm_id: int) -> List[Dict[str, Any]]:
        return self._load(self._budgets_key(farm_id))

    def get_active_budget_plan(self, farm_id: int) -> Optional[Dict[str, Any]]:
        return next((p for p in self.get_budget_plans(farm_id) if p.get("is_active")), None)

    def update_budget_plan(self, farm_id: int, plan_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        key = self._budgets_key(farm_id)
        plans = self._load(key)
        for plan in plans:
            if plan.get("id") == plan_id:
                changes = {k: v for k, v in updates.items() if k not in ("id", "farm_id")}
                if "period" in changes and changes["period"] not in BUDGET_PERIODS:
                    raise ValidationError(f"period must be one of {', '.join(BUDGET_PERIODS)}")
                plan.update(changes)
                self._store.save(key, plans)
                return plan
        raise NotFoundError(f"Budget plan {plan_id} not found")
