"""
Notifications API Blueprint
===========================

Endpoints:
- GET /api/v1/notifications/ - List notifications, newest first (?unread_only=)
- GET /api/v1/notifications/unread-count - Number of unread notifications
- POST /api/v1/notifications/<id>/read - Mark one notification read
- POST /api/v1/notifications/read-all - Mark every notification read
"""

from __future__ import annotations

from flask import Blueprint, Response

from app.blueprints.api._common import fail, get_bool_arg, get_notification_store, success
from app.utils.http import safe_route

notifications_api = Blueprint("notifications_api", __name__)


@notifications_api.route("/", methods=["GET"])
@safe_route("Failed to list notifications")
def list_notifications() -> Response:
    store = get_notification_store()
    items = store.get_notifications(unread_only=get_bool_arg("unread_only"))
    return success({"notifications": [n.to_dict() for n in items], "unread_count": store.get_unread_count()})


@notifications_api.route("/unread-count", methods=["GET"])
@safe_route("Failed to count unread notifications")
def unread_count() -> Response:
    return success({"unread_count": get_notification_store().get_unread_count()})


@notifications_api.route("/<notification_id>/read", methods=["POST"])
@safe_route("Failed to mark notification read")
def mark_read(notification_id: str) -> Response:
    if not get_notification_store().mark_read(notification_id):
        return fail("Notification not found", 404)
    return success({"id": notification_id, "read": True})


@notifications_api.route("/read-all", methods=["POST"])
@safe_route("Failed to mark notifications read")
def mark_all_read() -> Response:
    return success({"marked": get_notification_store().mark_all_read()})
