"""
Irrigation API Blueprint
========================

REST API endpoints for irrigation schedules, completion and reminders.

Endpoints:
- GET /api/v1/irrigation/schedules - List schedules (?farm_id=, ?active_only=)
- POST /api/v1/irrigation/schedules - Create a schedule
- GET /api/v1/irrigation/schedules/<id> - Get a schedule
- DELETE /api/v1/irrigation/schedules/<id> - Delete a schedule
- POST /api/v1/irrigation/schedules/<id>/activate - Re-enable reminders
- POST /api/v1/irrigation/schedules/<id>/deactivate - Pause reminders
- POST /api/v1/irrigation/schedules/<id>/complete - Mark irrigation as done
- GET /api/v1/irrigation/logs - Irrigation history (?schedule_id=, ?farm_id=, ?limit=)
- GET /api/v1/irrigation/usage/<farm_id> - Water usage summary (?days=)
- POST /api/v1/irrigation/scan - Run a reminder scan now
- GET /api/v1/irrigation/scheduler/status - Scheduler and last scan status
"""

from __future__ import annotations

from flask import Blueprint, Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    fail,
    get_bool_arg,
    get_completion_service,
    get_int_arg,
    get_irrigation_log_repo,
    get_json,
    get_reminder_service,
    get_schedule_service,
    get_scheduler,
    success,
)
from app.schemas import CompleteIrrigationRequest, CreateScheduleRequest
from app.utils.http import safe_route, validation_error_response

irrigation_bp = Blueprint("irrigation", __name__)

_COMPLETION_ERROR_STATUS = {"not_found": 404, "validation_error": 400}


# ==================== Schedules ====================


@irrigation_bp.route("/schedules", methods=["GET"])
@safe_route("Failed to list irrigation schedules")
def list_schedules() -> Response:
    schedules = get_schedule_service().list_schedules(
        farm_id=get_int_arg("farm_id"),
        active_only=get_bool_arg("active_only"),
    )
    return success([s.to_dict() for s in schedules])


@irrigation_bp.route("/schedules", methods=["POST"])
@safe_route("Failed to create irrigation schedule")
def create_schedule() -> Response:
    try:
        body = CreateScheduleRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    schedule = get_schedule_service().create_schedule(**body.model_dump())
    return success(schedule.to_dict(), 201, message="Irrigation schedule created")


@irrigation_bp.route("/schedules/<int:schedule_id>", methods=["GET"])
@safe_route("Failed to get irrigation schedule")
def get_schedule(schedule_id: int) -> Response:
    return success(get_schedule_service().get_schedule(schedule_id).to_dict())


@irrigation_bp.route("/schedules/<int:schedule_id>", methods=["DELETE"])
@safe_route("Failed to delete irrigation schedule")
def delete_schedule(schedule_id: int) -> Response:
    get_schedule_service().delete_schedule(schedule_id)
    return success({"schedule_id": schedule_id}, message="Irrigation schedule deleted")


@irrigation_bp.route("/schedules/<int:schedule_id>/activate", methods=["POST"])
@safe_route("Failed to activate irrigation schedule")
def activate_schedule(schedule_id: int) -> Response:
    return success(get_schedule_service().activate_schedule(schedule_id).to_dict())


@irrigation_bp.route("/schedules/<int:schedule_id>/deactivate", methods=["POST"])
@safe_route("Failed to deactivate irrigation schedule")
def deactivate_schedule(schedule_id: int) -> Response:
    return success(get_schedule_service().deactivate_schedule(schedule_id).to_dict())


@irrigation_bp.route("/schedules/<int:schedule_id>/complete", methods=["POST"])
@safe_route("Failed to complete irrigation")
def complete_irrigation(schedule_id: int) -> Response:
    """
    Mark the schedule's irrigation as done.

    Request body:
    - water_used: litres used (> 0)
    - notes: optional
    """
    try:
        body = CompleteIrrigationRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    result = get_completion_service().mark_completed(schedule_id, body.water_used, body.notes)
    if not result.get("ok"):
        status = _COMPLETION_ERROR_STATUS.get(result.get("error_code"), 500)
        return fail(result.get("error") or "Failed to complete irrigation", status)

    data = {k: v for k, v in result.items() if k != "ok"}
    return success(data, message="Irrigation completed")


# ==================== History ====================


@irrigation_bp.route("/logs", methods=["GET"])
@safe_route("Failed to get irrigation logs")
def get_logs() -> Response:
    repo = get_irrigation_log_repo()
    limit = get_int_arg("limit", 100)
    schedule_id = get_int_arg("schedule_id")
    farm_id = get_int_arg("farm_id")

    if schedule_id is not None:
        logs = repo.list_for_schedule(schedule_id, limit=limit)
    elif farm_id is not None:
        logs = repo.list_for_farm(farm_id, limit=limit)
    else:
        logs = repo.list_recent(limit=limit)
    return success([log.to_dict() for log in logs])


@irrigation_bp.route("/usage/<int:farm_id>", methods=["GET"])
@safe_route("Failed to get water usage")
def get_water_usage(farm_id: int) -> Response:
    days = get_int_arg("days", 30)
    return success(get_irrigation_log_repo().water_usage_summary(farm_id, days=days))


# ==================== Reminders ====================


@irrigation_bp.route("/scan", methods=["POST"])
@safe_route("Failed to run reminder scan")
def run_scan() -> Response:
    """Run one reminder scan synchronously and return its summary."""
    result = get_reminder_service().scan()
    if result.error:
        return fail(result.error, 500, details={"scan": result.to_dict()})
    return success(result.to_dict())


@irrigation_bp.route("/scheduler/status", methods=["GET"])
@safe_route("Failed to get scheduler status")
def get_scheduler_status() -> Response:
    """Scheduler state, health, recent job runs (?history_limit=, default 20) and the last scan."""
    scheduler = get_scheduler()
    limit = get_int_arg("history_limit", 20)
    return success(
        {
            "scheduler": scheduler.get_status(),
            "health": scheduler.health_check(),
            "history": [entry.to_dict() for entry in scheduler.get_history(limit=limit)],
            "reminders": get_reminder_service().get_status(),
        }
    )
