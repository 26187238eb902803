"""
Costs API Blueprint
===================

Endpoints:
- POST /api/v1/costs/ - Record a cost item
- GET /api/v1/costs/<farm_id> - Cost items of the last ?days= (default 365)
- DELETE /api/v1/costs/<farm_id>/<item_id> - Delete a cost item
- GET /api/v1/costs/<farm_id>/summary - Totals, breakdown and trend (?days=30)
- GET /api/v1/costs/<farm_id>/prediction - Predicted monthly spend
- GET /api/v1/costs/<farm_id>/roi?revenue= - Return on investment (?days=365)
- GET /api/v1/costs/<farm_id>/budgets - Budget plans
- POST /api/v1/costs/<farm_id>/budgets - Create a budget plan
- PATCH /api/v1/costs/<farm_id>/budgets/<plan_id> - Update a budget plan
"""

from __future__ import annotations

from flask import Blueprint, Response, request
from pydantic import ValidationError

from app.blueprints.api._common import fail, get_cost_service, get_int_arg, get_json, success
from app.schemas import BudgetPlanRequest, BudgetPlanUpdateRequest, CostItemRequest
from app.utils.http import safe_route, validation_error_response

costs_api = Blueprint("costs_api", __name__)


@costs_api.route("/", methods=["POST"])
@safe_route("Failed to record cost item")
def add_cost_item() -> Response:
    try:
        body = CostItemRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    item = get_cost_service().add_cost_item(**body.model_dump(mode="json"))
    return success(item, 201)


@costs_api.route("/<int:farm_id>", methods=["GET"])
@safe_route("Failed to list cost items")
def list_cost_items(farm_id: int) -> Response:
    return success(get_cost_service().get_cost_items(farm_id, days=get_int_arg("days", 365)))


@costs_api.route("/<int:farm_id>/<item_id>", methods=["DELETE"])
@safe_route("Failed to delete cost item")
def delete_cost_item(farm_id: int, item_id: str) -> Response:
    get_cost_service().delete_cost_item(farm_id, item_id)
    return success({"id": item_id}, message="Cost item deleted")


@costs_api.route("/<int:farm_id>/summary", methods=["GET"])
@safe_route("Failed to calculate cost summary")
def cost_summary(farm_id: int) -> Response:
    return success(get_cost_service().calculate_cost_summary(farm_id, days=get_int_arg("days", 30)))


@costs_api.route("/<int:farm_id>/prediction", methods=["GET"])
@safe_route("Failed to predict monthly costs")
def predict_costs(farm_id: int) -> Response:
    return success({"farm_id": farm_id, "predicted_monthly_cost": get_cost_service().predict_monthly_costs(farm_id)})


@costs_api.route("/<int:farm_id>/roi", methods=["GET"])
@safe_route("Failed to calculate ROI")
def calculate_roi(farm_id: int) -> Response:
    raw = request.args.get("revenue")
    try:
        revenue = float(raw)
    except (TypeError, ValueError):
        return fail("Query parameter 'revenue' must be a number", 400)
    return success(get_cost_service().calculate_roi(farm_id, revenue, days=get_int_arg("days", 365)))


# ==================== Budgets ====================


@costs_api.route("/<int:farm_id>/budgets", methods=["GET"])
@safe_route("Failed to list budget plans")
def list_budget_plans(farm_id: int) -> Response:
    service = get_cost_service()
    return success({"plans": service.get_budget_plans(farm_id), "active": service.get_active_budget_plan(farm_id)})


@costs_api.route("/<int:farm_id>/budgets", methods=["POST"])
@safe_route("Failed to create budget plan")
def create_budget_plan(farm_id: int) -> Response:
    try:
        body = BudgetPlanRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    plan = get_cost_service().create_budget_plan(farm_id=farm_id, **body.model_dump(mode="json"))
    return success(plan, 201)


@costs_api.route("/<int:farm_id>/budgets/<plan_id>", methods=["PATCH"])
@safe_route("Failed to update budget plan")
def update_budget_plan(farm_id: int, plan_id: str) -> Response:
    try:
        body = BudgetPlanUpdateRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    updates = body.model_dump(mode="json", exclude_unset=True)
    return success(get_cost_service().update_budget_plan(farm_id, plan_id, updates))
