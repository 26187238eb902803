"""
Soil Moisture API Blueprint
===========================

Endpoints:
- POST /api/v1/soil/readings - Record a reading (may raise an alert)
- GET /api/v1/soil/readings/<farm_id> - Readings of the last ?days= (default 30)
- GET /api/v1/soil/readings/<farm_id>/latest - Latest reading (?crop=)
- GET /api/v1/soil/alerts - Alerts (?farm_id=)
- POST /api/v1/soil/alerts/<id>/acknowledge - Acknowledge an alert
"""

from __future__ import annotations

from flask import Blueprint, Response, request
from pydantic import ValidationError

from app.blueprints.api._common import get_int_arg, get_json, get_soil_moisture_service, success
from app.schemas import SoilReadingRequest
from app.utils.http import safe_route, validation_error_response

soil_api = Blueprint("soil_api", __name__)


@soil_api.route("/readings", methods=["POST"])
@safe_route("Failed to record soil moisture reading")
def add_reading() -> Response:
    try:
        body = SoilReadingRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    result = get_soil_moisture_service().add_reading(**body.model_dump())
    return success(result, 201)


@soil_api.route("/readings/<int:farm_id>", methods=["GET"])
@safe_route("Failed to get soil moisture readings")
def get_readings(farm_id: int) -> Response:
    days = get_int_arg("days", 30)
    return success(get_soil_moisture_service().get_readings(farm_id, days=days))


@soil_api.route("/readings/<int:farm_id>/latest", methods=["GET"])
@safe_route("Failed to get latest soil moisture reading")
def get_latest_reading(farm_id: int) -> Response:
    reading = get_soil_moisture_service().get_latest_reading(farm_id, crop=request.args.get("crop"))
    return success(reading)


@soil_api.route("/alerts", methods=["GET"])
@safe_route("Failed to get soil moisture alerts")
def get_alerts() -> Response:
    return success(get_soil_moisture_service().get_alerts(get_int_arg("farm_id")))


@soil_api.route("/alerts/<alert_id>/acknowledge", methods=["POST"])
@safe_route("Failed to acknowledge soil moisture alert")
def acknowledge_alert(alert_id: str) -> Response:
    return success(get_soil_moisture_service().acknowledge_alert(alert_id))
