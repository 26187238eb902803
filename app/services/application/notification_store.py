"""
Notification Store
==================

In-memory list of in-app notifications, persisted as a whole document in a
key-value store and observable through subscriptions.

Every mutation rewrites the full list under ``aquawise_real_notifications``.
Newest notifications come first. Mutations are serialized with a re-entrant
lock so a subscriber may read from (or write to) the store from inside its
callback without deadlocking, and never sees a half-applied change.

The web server and the standalone ``aquawise-scheduler`` process share the
document. Each mutation re-reads it inside ``KeyValueStore.update`` (which
holds the file lock) and applies its change to that fresh copy, and queries
re-read it too, so neither process drops or hides the other's notifications.
Subscribers only hear about mutations made in their own process.

If a write fails the in-memory list stays authoritative: reads stop
reloading and the next successful mutation writes the whole list back.

High and critical notifications are also handed to an optional platform
notifier (Socket.IO push in the web app). That channel is best effort.
"""
from __future__ import annotations

import copy
import dataclasses
import logging
import threading
import uuid
from datetime import date, timedelta, timezone, tzinfo
from typing import Any, Callable, List, Optional, Protocol, Tuple, TypeVar

from app.domain.notifications import Notification
from app.enums import NotificationPriority, NotificationType
from app.utils.persistent_store import KeyValueStore
from app.utils.time import Clock, local_date, utc_now

logger = logging.getLogger(__name__)

STORAGE_KEY = "aquawise_real_notifications"

Subscriber = Callable[[List[Notification]], None]
T = TypeVar("T")
# A change edits the list in place and returns (result, changed)
Change = Callable[[List[Notification]], Tuple[T, bool]]


class PlatformNotifier(Protocol):
    """Out-of-app channel for urgent notifications."""

    def send(self, title: str, body: str) -> None: ...


class NotificationStore:
    """Observable, persisted notification list."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock = utc_now,
        platform_notifier: Optional[PlatformNotifier] = None,
        storage_key: str = STORAGE_KEY,
    ) -> None:
        self._store = store
        self._clock = clock
        self._platform_notifier = platform_notifier
        self._key = storage_key
        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        self._unsaved = False
        self._items: List[Notification] = self._parse(self._store.load(self._key, []))

    def set_platform_notifier(self, notifier: Optional[PlatformNotifier]) -> None:
        self._platform_notifier = notifier

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def _parse(self, raw: Any) -> List[Notification]:
        if not isinstance(raw, list):
            logger.warning("Stored notifications under %s are not a list; starting empty", self._key)
            return []

        items: List[Notification] = []
        for entry in raw:
            try:
                items.append(Notification.from_dict(entry))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed stored notification: %s", e)
        return items

    def _refresh(self) -> None:
        """Reload the persisted list so changes from other processes show up."""
        if self._unsaved:
            return
        self._items = self._parse(self._store.load(self._key, []))

    def _mutate(self, change: Change[T]) -> T:
        """Apply ``change`` to the freshest list, persist it and notify subscribers."""
        outcome: list = []

        def apply(raw: Any) -> list:
            items = self._items if self._unsaved else self._parse(raw)
            outcome.append(change(items))
            self._items = items
            return [n.to_dict() for n in items]

        with self._lock:
            try:
                self._store.update(self._key, apply, [])
                self._unsaved = False
            except (OSError, TimeoutError, TypeError, ValueError) as e:
                logger.error("Failed to persist notifications: %s", e)
                self._unsaved = True
                if not outcome:
                    outcome.append(change(self._items))

            result, changed = outcome[0]
            if changed:
                self._notify()
            return result

    def _snapshot(self) -> List[Notification]:
        return copy.deepcopy(self._items)

    def _notify(self) -> None:
        snapshot = self._snapshot()
        for callback in list(self._subscribers):
            try:
                callback(copy.deepcopy(snapshot))
            except Exception as e:
                logger.error("Notification subscriber %r failed: %s", callback, e, exc_info=True)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def add(self, notification: Notification) -> Notification:
        """
        Add a notification.

        Assigns a fresh id and timestamp, forces ``read=False`` and prepends
        it to the list.

        Returns:
            A copy of the stored notification.
        """
        stored = dataclasses.replace(
            notification,
            id=f"notif_{uuid.uuid4().hex}",
            timestamp=self._clock(),
            read=False,
            action_data=copy.deepcopy(notification.action_data),
        )

        def prepend(items: List[Notification]) -> Tuple[Notification, bool]:
            items.insert(0, copy.deepcopy(stored))
            return copy.deepcopy(stored), True

        result = self._mutate(prepend)
        logger.debug("Added %s notification %s (schedule=%s)", stored.type, stored.id, stored.schedule_id)

        if NotificationPriority(stored.priority).is_urgent:
            self._send_platform_notification(stored)
        return result

    def add_system_alert(
        self,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        farm_id: Optional[int] = None,
    ) -> Notification:
        return self.add(
            Notification(
                type=NotificationType.SYSTEM_ALERT,
                title=title,
                message=message,
                priority=priority,
                farm_id=farm_id,
            )
        )

    def mark_read(self, notification_id: str) -> bool:
        """
        Mark one notification read.

        Returns:
            True if the notification exists (whether or not it was unread).
        """

        def mark(items: List[Notification]) -> Tuple[bool, bool]:
            for item in items:
                if item.id == notification_id:
                    if item.read:
                        return True, False
                    item.read = True
                    return True, True
            return False, False

        return self._mutate(mark)

    def mark_all_read(self) -> int:
        """Mark every notification read. Returns how many changed."""
        return self._mark_matching_read(lambda n: True)

    def mark_read_for_schedule(self, schedule_id: int) -> int:
        """Mark every unread notification of a schedule read. Returns how many changed."""
        return self._mark_matching_read(lambda n: n.schedule_id == schedule_id)

    def mark_read_for_farm(self, farm_id: int) -> int:
        """Mark every unread notification raised for a farm read. Returns how many changed."""
        return self._mark_matching_read(lambda n: n.farm_id == farm_id)

    def _mark_matching_read(self, predicate: Callable[[Notification], bool]) -> int:
        def mark(items: List[Notification]) -> Tuple[int, bool]:
            changed = 0
            for item in items:
                if not item.read and predicate(item):
                    item.read = True
                    changed += 1
            return changed, changed > 0

        return self._mutate(mark)

    def prune_older_than(self, days: int = 30) -> int:
        """
        Drop notifications older than ``days``.

        Only notifications strictly newer than the cutoff are kept; one stamped
        exactly at ``now - days`` is removed.

        Returns:
            Number of notifications removed.
        """
        cutoff = self._clock() - timedelta(days=days)

        def prune(items: List[Notification]) -> Tuple[int, bool]:
            kept = [n for n in items if n.timestamp is not None and n.timestamp > cutoff]
            removed = len(items) - len(kept)
            items[:] = kept
            return removed, removed > 0

        removed = self._mutate(prune)
        if removed:
            logger.info("Pruned %d notifications older than %d days", removed, days)
        return removed

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a listener.

        The callback runs immediately with the current list and again after
        every mutation. Returns a function that removes the listener.
        """
        with self._lock:
            self._subscribers.append(callback)
            self._refresh()
            snapshot = self._snapshot()
        try:
            callback(snapshot)
        except Exception as e:
            logger.error("Notification subscriber %r failed: %s", callback, e, exc_info=True)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def get_notifications(self, unread_only: bool = False) -> List[Notification]:
        with self._lock:
            self._refresh()
            items = [n for n in self._items if not (unread_only and n.read)]
            return copy.deepcopy(items)

    def get_unread_count(self) -> int:
        with self._lock:
            self._refresh()
            return sum(1 for n in self._items if not n.read)

    def has_unread(
        self,
        schedule_id: int,
        notification_type: NotificationType,
        on_date: Optional[date] = None,
        tz: tzinfo = timezone.utc,
    ) -> bool:
        """
        Whether an unread notification of this type exists for the schedule.

        With ``on_date`` only notifications created on that calendar date (in
        ``tz``) count. Linear scan; the list is small and pruned regularly.
        """
        with self._lock:
            self._refresh()
            for n in self._items:
                if n.read or n.schedule_id != schedule_id or n.type != notification_type:
                    continue
                if on_date is None:
                    return True
                if n.timestamp is not None and local_date(n.timestamp, tz) == on_date:
                    return True
            return False

    def _send_platform_notification(self, notification: Notification) -> None:
        if self._platform_notifier is None:
            return
        try:
            self._platform_notifier.send(notification.title, notification.message)
        except Exception as e:
            logger.warning("Platform notification failed for %s: %s", notification.id, e)
