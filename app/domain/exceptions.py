"""Exception hierarchy for AquaWise.

Services raise these and ``app/utils/http.safe_route`` turns them into JSON
error envelopes using ``http_status``. ``error_code`` is what services put in
their ``{"ok": False, ...}`` results, e.g. the completion handler's
``"not_found"``.

Hierarchy
---------
::

    AquaWiseError (base: maps to 500)
    ├── ValidationError          (400: bad input from caller)
    ├── NotFoundError            (404: farm, crop, schedule, post or alert missing)
    ├── RepositoryError          (500: SQLite failure)
    └── ConfigurationError       (500: invalid settings, raised at startup)
"""

from __future__ import annotations


class AquaWiseError(Exception):
    """Base exception for all AquaWise application errors.

    The message is logged server-side; for 5xx statuses the client only sees a
    generic message.
    """

    http_status: int = 500
    error_code: str = "internal_error"


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(AquaWiseError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400
    error_code: str = "validation_error"


class NotFoundError(AquaWiseError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404
    error_code: str = "not_found"


# ── Server errors (5xx) ──────────────────────────────────────────────


class RepositoryError(AquaWiseError):
    """SQLite read or write failed (HTTP 500)."""

    error_code: str = "repository_error"


class ConfigurationError(AquaWiseError):
    """Environment settings are missing or out of range (HTTP 500)."""

    error_code: str = "configuration_error"
