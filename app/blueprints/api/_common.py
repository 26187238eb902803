"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, get_json, success, fail,
        get_schedule_service, get_notification_store, ...
    )

This module centralizes:
- Service container access
- Request JSON / query parsing
- Standardized response helpers
- Common service accessors
"""
from __future__ import annotations

import logging

from flask import current_app, request

from app.domain.exceptions import ValidationError
from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")

# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """
    Get JSON request body with silent failure.

    Returns:
        dict: Parsed JSON body or empty dict if not available
    """
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def get_int_arg(name: str, default: int | None = None, *, minimum: int = 1) -> int | None:
    """Read an integer query parameter; raises ValidationError on garbage."""
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"Query parameter '{name}' must be an integer") from None
    if value < minimum:
        raise ValidationError(f"Query parameter '{name}' must be >= {minimum}")
    return value


def get_bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Standard error response wrapper.

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, details=details)


# ============================================================================
# SERVICE ACCESSORS
# ============================================================================


def get_schedule_service():
    return get_container().schedule_service


def get_completion_service():
    return get_container().irrigation_completion_service


def get_reminder_service():
    return get_container().irrigation_reminder_service


def get_notification_store():
    return get_container().notification_store


def get_farm_service():
    return get_container().farm_service


def get_irrigation_log_repo():
    return get_container().irrigation_log_repo


def get_soil_moisture_service():
    return get_container().soil_moisture_service


def get_cost_service():
    return get_container().cost_service


def get_community_service():
    return get_container().community_service


def get_scheduler():
    return get_container().scheduler
