"""JSON envelopes and route error handling for the AquaWise API.

Every endpoint answers with the same shape::

    {"ok": true,  "data": {...},  "error": null}
    {"ok": false, "data": null,   "error": {"message": ..., "timestamp": ...}, "message": ...}

The web client shows ``message`` as a toast, so 4xx messages come straight
from the raised :class:`~app.domain.exceptions.AquaWiseError` ("Irrigation
schedule 7 not found") while 5xx messages are always generic.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from app.utils.time import iso_now

_log = logging.getLogger(__name__)

# Client-facing text for server-side failures and bare status codes
_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
    500: "An internal error occurred",
}


def safe_error(
    exc: BaseException,
    status: int = 500,
    *,
    context: str = "",
) -> Response:
    """Log *exc* with its traceback and answer with a generic message.

    ``context`` is the route's fallback message, e.g. ``"Failed to complete
    irrigation"``; it only appears in the server log.
    """
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    message = _GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500])
    return error_response(message, status)


def success_response(
    data: dict | list | None = None,
    status: int = 200,
    *,
    message: str | None = None,
) -> Response:
    payload: dict[str, Any] = {"ok": True, "data": data, "error": None}
    if message is not None:
        payload["message"] = message
    response = jsonify(payload)
    response.status_code = status
    return response


def error_response(
    message: str,
    status: int = 500,
    *,
    details: dict | None = None,
) -> Response:
    """Failure envelope; ``details`` (e.g. pydantic errors) is merged into ``error`` and echoed at top level."""
    error: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if details:
        error.update(details)
    body: dict[str, Any] = {"ok": False, "data": None, "error": error, "message": message}
    if details:
        body["details"] = details
    response = jsonify(body)
    response.status_code = status
    return response


def safe_route(
    error_message: str = "An internal error occurred",
    *,
    error_status: int = 500,
) -> Callable:
    """Wrap a route so no exception escapes as an HTML error page.

    ``AquaWiseError`` subclasses map to their ``http_status``: a missing
    schedule becomes 404 with its message, a ``RepositoryError`` becomes a
    generic 500. Anything else is logged and answered with ``error_status``.

    Usage::

        @irrigation_bp.route("/schedules/<int:schedule_id>/deactivate", methods=["POST"])
        @safe_route("Failed to deactivate schedule")
        def deactivate_schedule(schedule_id):
            return success(get_schedule_service().deactivate_schedule(schedule_id).to_dict())
    """
    from app.domain.exceptions import AquaWiseError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except AquaWiseError as exc:
                if exc.http_status >= 500:
                    return safe_error(exc, exc.http_status, context=error_message)
                return error_response(str(exc) or error_message, exc.http_status)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator


def validation_error_response(exc: Any, message: str = "Invalid request") -> Response:
    """400 envelope for a pydantic ``ValidationError``, its error list under ``errors``."""
    errors = exc.errors(include_url=False, include_context=False)
    return error_response(message, 400, details={"errors": errors})
