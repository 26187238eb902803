"""
SMS Service
===========

SMS delivery through the Twilio Messages REST endpoint.

Sending never raises: every outcome, including missing credentials and
network errors, is reported as an :class:`SmsResult` so callers can log the
failure and carry on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import requests

if TYPE_CHECKING:
    from app.config import AppConfig

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def due_soon_message(crop_name: str, farm_name: str, minutes_until: int) -> str:
    return f"AquaWise Reminder: Irrigation for {crop_name} at {farm_name} is due in {minutes_until} minutes."


def overdue_message(crop_name: str, farm_name: str, hours_overdue: int) -> str:
    return (
        f"AquaWise Alert: Irrigation for {crop_name} at {farm_name} is "
        f"{hours_overdue} hours overdue. Please attend to it."
    )


@dataclass(frozen=True)
class SmsResult:
    """Outcome of one send attempt."""

    success: bool
    error: str | None = None
    sid: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "error": self.error, "sid": self.sid}


class SmsService:
    """
    Twilio SMS sender.

    Uses HTTP basic auth (account SID / auth token) and a form-encoded body
    with ``To``, ``From`` and ``Body``.
    """

    def __init__(
        self,
        account_sid: str = "",
        auth_token: str = "",
        from_number: str = "",
        *,
        enabled: bool = True,
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._enabled = enabled
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: "AppConfig", session: requests.Session | None = None) -> "SmsService":
        return cls(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_from_number,
            enabled=config.sms_enabled,
            timeout=config.sms_timeout_seconds,
            session=session,
        )

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def send(self, phone: str | None, message: str) -> SmsResult:
        """
        Send a text message.

        Args:
            phone: Destination number in E.164 format.
            message: Message body.

        Returns:
            SmsResult with the Twilio message SID on success.
        """
        if not phone or not str(phone).strip():
            return SmsResult(success=False, error="Phone number is required")
        if not message or not message.strip():
            return SmsResult(success=False, error="Message is required")
        if not self._enabled:
            logger.debug("SMS disabled; not sending to %s", phone)
            return SmsResult(success=False, error="SMS sending is disabled")
        if not self.configured:
            logger.warning("Twilio credentials not configured; SMS to %s skipped", phone)
            return SmsResult(success=False, error="Twilio credentials not configured")

        url = TWILIO_MESSAGES_URL.format(sid=self._account_sid)
        try:
            response = self._session.post(
                url,
                data={"To": str(phone).strip(), "From": self._from_number, "Body": message},
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("SMS request to %s failed: %s", phone, e)
            return SmsResult(success=False, error=str(e))

        payload = self._json(response)
        if not response.ok:
            error = payload.get("message") or f"HTTP {response.status_code}"
            logger.error("Twilio rejected SMS to %s: %s", phone, error)
            return SmsResult(success=False, error=str(error))

        sid = payload.get("sid")
        logger.info("SMS sent to %s (sid=%s)", phone, sid)
        return SmsResult(success=True, sid=sid)

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
