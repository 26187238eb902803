from __future__ import annotations

import atexit
import logging
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.community import community_api
from app.blueprints.api.costs import costs_api
from app.blueprints.api.farms import farms_api
from app.blueprints.api.irrigation import irrigation_bp
from app.blueprints.api.notifications import notifications_api
from app.blueprints.api.soil import soil_api
from app.config import AppConfig, load_config, setup_logging
from app.extensions import init_extensions, socketio
from app.utils.emitters import NotificationEmitter


def create_app(
    config: AppConfig | None = None,
    *,
    container: Any = None,
    config_overrides: dict[str, Any] | None = None,
) -> Flask:
    """
    Application factory.

    Args:
        config: Configuration; loaded from the environment when omitted.
        container: Prebuilt ServiceContainer (tests inject one); built from
            ``config`` when omitted.
        config_overrides: Attribute overrides applied to the loaded config.
    """
    config = config or load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key.lower(), value)

    # Configure logging early so container startup is visible in the terminal and aquawise.log.
    setup_logging(debug=config.DEBUG, level=config.log_level, log_file=config.log_file)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())

    init_extensions(flask_app, config.socketio_cors_origins)

    if container is None:
        from app.services.container import ServiceContainer

        container = ServiceContainer.build(config)
    flask_app.config["CONTAINER"] = container

    # Push notification changes to Socket.IO clients
    emitter = NotificationEmitter(socketio)
    emitter.attach(container.notification_store)
    flask_app.extensions["notification_emitter"] = emitter

    # ── Graceful shutdown ───────────────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            emitter.detach()
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    atexit.register(_graceful_shutdown, "atexit")
    flask_app.extensions["aquawise_shutdown"] = _graceful_shutdown

    # Global JSON error handler for anything that escapes a route on /api/.
    # Domain exceptions carry their own ``http_status``.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from app.domain.exceptions import AquaWiseError
        from app.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, AquaWiseError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status)

        return safe_error(exc, 500, context="unhandled")

    # ── API version prefix ──────────────────────────────────────────
    V1 = "/api/v1"

    flask_app.register_blueprint(irrigation_bp, url_prefix=f"{V1}/irrigation")
    flask_app.register_blueprint(notifications_api, url_prefix=f"{V1}/notifications")
    flask_app.register_blueprint(farms_api, url_prefix=f"{V1}/farms")
    flask_app.register_blueprint(soil_api, url_prefix=f"{V1}/soil")
    flask_app.register_blueprint(costs_api, url_prefix=f"{V1}/costs")
    flask_app.register_blueprint(community_api, url_prefix=f"{V1}/community")

    @flask_app.get(f"{V1}/health")
    def _health():
        from app.utils.http import success_response

        return success_response(
            {
                "status": "ok",
                "scheduler": container.scheduler.health_check()["health"],
                "sms_configured": container.sms_service.configured,
            }
        )

    for bp_name in flask_app.blueprints:
        logging.debug("Registered blueprint: %s", bp_name)

    logging.getLogger(__name__).info("AquaWise application initialized successfully.")
    return flask_app


__all__ = ["create_app", "socketio"]
