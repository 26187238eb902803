"""
Farms API Blueprint
===================

Farmer profiles, farms and crops.

Endpoints:
- POST /api/v1/farms/profiles - Create a farmer profile
- GET /api/v1/farms/profiles/<id> - Get a farmer profile
- PATCH /api/v1/farms/profiles/<id> - Update a farmer profile
- POST /api/v1/farms/ - Create a farm
- GET /api/v1/farms/ - List farms (?farmer_id=)
- GET /api/v1/farms/<id> - Get a farm
- PATCH /api/v1/farms/<id> - Update a farm
- DELETE /api/v1/farms/<id> - Delete a farm with its crops and schedules
- POST /api/v1/farms/<id>/crops - Add a crop to a farm
- GET /api/v1/farms/<id>/crops - List a farm's crops
- PATCH /api/v1/farms/crops/<crop_id> - Update a crop
- DELETE /api/v1/farms/crops/<crop_id> - Delete a crop with its schedules
"""

from __future__ import annotations

from flask import Blueprint, Response
from pydantic import BaseModel, ValidationError

from app.blueprints.api._common import get_farm_service, get_int_arg, get_json, success
from app.schemas import (
    CreateCropRequest,
    CreateFarmRequest,
    CreateProfileRequest,
    UpdateCropRequest,
    UpdateFarmRequest,
    UpdateProfileRequest,
)
from app.utils.http import safe_route, validation_error_response

farms_api = Blueprint("farms_api", __name__)


def _changes(body: BaseModel) -> dict:
    # Only fields the client sent; enums and dates as their stored strings
    return body.model_dump(exclude_unset=True, mode="json")


# ==================== Profiles ====================


@farms_api.route("/profiles", methods=["POST"])
@safe_route("Failed to create profile")
def create_profile() -> Response:
    try:
        body = CreateProfileRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    profile = get_farm_service().create_profile(body.name, email=body.email, phone=body.phone)
    return success(profile, 201)


@farms_api.route("/profiles/<int:profile_id>", methods=["GET"])
@safe_route("Failed to get profile")
def get_profile(profile_id: int) -> Response:
    return success(get_farm_service().get_profile(profile_id))


@farms_api.route("/profiles/<int:profile_id>", methods=["PATCH"])
@safe_route("Failed to update profile")
def update_profile(profile_id: int) -> Response:
    try:
        body = UpdateProfileRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    return success(get_farm_service().update_profile(profile_id, _changes(body)))


# ==================== Farms ====================


@farms_api.route("/", methods=["POST"])
@safe_route("Failed to create farm")
def create_farm() -> Response:
    try:
        body = CreateFarmRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    farm = get_farm_service().create_farm(
        body.farmer_id,
        body.name,
        location=body.location,
        size=body.size,
        soil_type=body.soil_type.value if body.soil_type else None,
    )
    return success(farm, 201)


@farms_api.route("/", methods=["GET"])
@safe_route("Failed to list farms")
def list_farms() -> Response:
    return success(get_farm_service().list_farms(get_int_arg("farmer_id")))


@farms_api.route("/<int:farm_id>", methods=["GET"])
@safe_route("Failed to get farm")
def get_farm(farm_id: int) -> Response:
    return success(get_farm_service().get_farm(farm_id))


@farms_api.route("/<int:farm_id>", methods=["PATCH"])
@safe_route("Failed to update farm")
def update_farm(farm_id: int) -> Response:
    try:
        body = UpdateFarmRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    return success(get_farm_service().update_farm(farm_id, _changes(body)))


@farms_api.route("/<int:farm_id>", methods=["DELETE"])
@safe_route("Failed to delete farm")
def delete_farm(farm_id: int) -> Response:
    get_farm_service().delete_farm(farm_id)
    return success({"farm_id": farm_id}, message="Farm deleted")


# ==================== Crops ====================


@farms_api.route("/<int:farm_id>/crops", methods=["POST"])
@safe_route("Failed to add crop")
def create_crop(farm_id: int) -> Response:
    try:
        body = CreateCropRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    crop = get_farm_service().create_crop(
        farm_id,
        body.name,
        area=body.area,
        planted_date=body.planted_date.isoformat() if body.planted_date else None,
        expected_harvest=body.expected_harvest.isoformat() if body.expected_harvest else None,
        water_requirement=body.water_requirement.value,
    )
    return success(crop, 201)


@farms_api.route("/<int:farm_id>/crops", methods=["GET"])
@safe_route("Failed to list crops")
def list_crops(farm_id: int) -> Response:
    return success(get_farm_service().list_crops(farm_id))


@farms_api.route("/crops/<int:crop_id>", methods=["PATCH"])
@safe_route("Failed to update crop")
def update_crop(crop_id: int) -> Response:
    try:
        body = UpdateCropRequest(**get_json())
    except ValidationError as ve:
        return validation_error_response(ve)

    return success(get_farm_service().update_crop(crop_id, _changes(body)))


@farms_api.route("/crops/<int:crop_id>", methods=["DELETE"])
@safe_route("Failed to delete crop")
def delete_crop(crop_id: int) -> Response:
    get_farm_service().delete_crop(crop_id)
    return success({"crop_id": crop_id}, message="Crop deleted")
