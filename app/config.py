"""
Configuration for AquaWise
==========================
Main application runtime settings: database and storage locations, the
irrigation reminder scan cadence, SMS gateway credentials and logging.
Sets up the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from app.domain.exceptions import ConfigurationError


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("AQUAWISE_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("AQUAWISE_SECRET_KEY", "AquaWiseDevSecretKey"))
    database_path: str = field(
        default_factory=lambda: os.getenv("AQUAWISE_DATABASE_PATH", "database/aquawise.db")
    )
    # Directory for JSON documents (notification list, soil readings, costs, posts)
    storage_dir: str = field(default_factory=lambda: os.getenv("AQUAWISE_STORAGE_DIR", "var"))
    # IANA zone used for "today" and schedule times of day
    timezone: str = field(default_factory=lambda: os.getenv("AQUAWISE_TIMEZONE", "UTC"))

    # Irrigation reminder scan
    enable_scheduler: bool = field(default_factory=lambda: _env_bool("AQUAWISE_ENABLE_SCHEDULER", True))
    scan_interval_seconds: int = field(default_factory=lambda: _env_int("AQUAWISE_SCAN_INTERVAL_SECONDS", 300))
    startup_scan_delay_seconds: int = field(
        default_factory=lambda: _env_int("AQUAWISE_STARTUP_SCAN_DELAY_SECONDS", 2)
    )
    due_soon_window_minutes: int = field(
        default_factory=lambda: _env_int("AQUAWISE_DUE_SOON_WINDOW_MINUTES", 60)
    )
    notification_retention_days: int = field(
        default_factory=lambda: _env_int("AQUAWISE_NOTIFICATION_RETENTION_DAYS", 30)
    )

    # SMS (Twilio)
    sms_enabled: bool = field(default_factory=lambda: _env_bool("AQUAWISE_SMS_ENABLED", True))
    twilio_account_sid: str = field(default_factory=lambda: os.getenv("TWILIO_ACCOUNT_SID", ""))
    twilio_auth_token: str = field(default_factory=lambda: os.getenv("TWILIO_AUTH_TOKEN", ""))
    twilio_from_number: str = field(default_factory=lambda: os.getenv("TWILIO_PHONE_NUMBER", ""))
    sms_timeout_seconds: int = field(default_factory=lambda: _env_int("AQUAWISE_SMS_TIMEOUT_SECONDS", 10))

    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("AQUAWISE_SOCKETIO_CORS", "*"))
    DEBUG: bool = field(default_factory=lambda: _env_bool("AQUAWISE_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("AQUAWISE_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("AQUAWISE_LOG_FILE", "logs/aquawise.log"))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="AquaWiseDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise ConfigurationError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set AQUAWISE_SECRET_KEY environment variable to a secure random value."
            )
        if self.scan_interval_seconds <= 0:
            raise ConfigurationError("AQUAWISE_SCAN_INTERVAL_SECONDS must be positive.")
        if self.startup_scan_delay_seconds < 0:
            raise ConfigurationError("AQUAWISE_STARTUP_SCAN_DELAY_SECONDS must not be negative.")
        if self.due_soon_window_minutes <= 0:
            raise ConfigurationError("AQUAWISE_DUE_SOON_WINDOW_MINUTES must be positive.")
        if self.notification_retention_days <= 0:
            raise ConfigurationError("AQUAWISE_NOTIFICATION_RETENTION_DAYS must be positive.")

    @property
    def sms_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number)

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DATABASE_PATH": self.database_path,
            "STORAGE_DIR": self.storage_dir,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "DEBUG": self.DEBUG,
        }


def setup_logging(debug: bool = False, level: str = "INFO", log_file: str | None = "logs/aquawise.log") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "aquawise_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "aquawise_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "aquawise_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "aquawise_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"aquawise_console", "aquawise_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    # SocketIO/EngineIO polling logs are noisy
    logging.getLogger("socketio").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    import logging

    from app.utils.time import resolve_timezone

    config = AppConfig()
    # Warns and falls back to UTC for unknown names
    resolve_timezone(config.timezone)
    if config.sms_enabled and not config.sms_configured:
        logging.getLogger("config_loader").info("Twilio credentials not set; SMS reminders will be skipped")
    return config
