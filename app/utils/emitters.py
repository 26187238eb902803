"""
WebSocket Emitters
=====================================

Purpose:
    Push notification changes to connected clients over Socket.IO.

Features:
- ``notifications_updated`` with the unread count whenever the store changes.
- ``platform_notification`` for high/critical alerts (the server-side stand-in
  for an OS-level notification).

Usage:
    emitter = NotificationEmitter(socketio)
    emitter.attach(container.notification_store)
"""

import logging
from typing import Any, Callable, List, Optional

from flask_socketio import SocketIO

from app.domain.notifications import Notification

logger = logging.getLogger(__name__)

SOCKETIO_NAMESPACE_NOTIFICATIONS = "/notifications"
WS_EVENT_NOTIFICATIONS_UPDATED = "notifications_updated"
WS_EVENT_PLATFORM_NOTIFICATION = "platform_notification"


class NotificationEmitter:
    """
    Socket.IO bridge for the notification store.

    Attributes:
        sio: The Socket.IO SocketIO instance for emitting events.
        namespace: Namespace all notification events are emitted under.
    """

    def __init__(self, sio: SocketIO, namespace: str = SOCKETIO_NAMESPACE_NOTIFICATIONS):
        self.sio = sio
        self.namespace = namespace
        self._unsubscribe: Optional[Callable[[], None]] = None

    def emit(self, event: str, payload: dict, room: str | None = None) -> None:
        """
        Emit a Socket.IO event; failures are logged, never raised.

        Args:
            event (str): Event name.
            payload (dict): JSON serializable data to send.
            room (Optional[str]): Socket.IO room identifier. Broadcasts if None.
        """
        try:
            self.sio.emit(event, payload, to=room, namespace=self.namespace)
            logger.debug("Emitted '%s' to namespace='%s' room='%s'", event, self.namespace, room or "broadcast")
        except Exception as e:
            logger.exception("Failed to emit event '%s': %s", event, e)

    def attach(self, store: Any) -> None:
        """Subscribe to a NotificationStore and install this emitter as its platform notifier."""
        self.detach()
        self._unsubscribe = store.subscribe(self.on_notifications_changed)
        store.set_platform_notifier(self)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_notifications_changed(self, notifications: List[Notification]) -> None:
        unread = sum(1 for n in notifications if not n.read)
        self.emit(WS_EVENT_NOTIFICATIONS_UPDATED, {"unread_count": unread, "total": len(notifications)})

    # PlatformNotifier
    def send(self, title: str, body: str) -> None:
        self.emit(WS_EVENT_PLATFORM_NOTIFICATION, {"title": title, "body": body})
