"""Notification store interface and in-memory implementation."""

from __future__ import annotations

import copy
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from typing import Any

from emi_engine.exceptions import StoreError
from emi_engine.models.notification import Notification

CREATE = "create"
DELETE = "delete"
UPDATE = "update"

# id and recipient are fixed once a notification is stored
UPDATABLE_FIELDS = frozenset(f.name for f in fields(Notification)) - {
    "notification_id",
    "recipient_id",
}


@dataclass
class BatchOperation:
    """One write in a notification batch."""

    kind: str  # create, delete or update
    notification: Notification | None = None
    notification_id: str | None = None
    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, notification: Notification) -> "BatchOperation":
        return cls(kind=CREATE, notification=notification)

    @classmethod
    def delete(cls, notification_id: str) -> "BatchOperation":
        return cls(kind=DELETE, notification_id=notification_id)

    @classmethod
    def update(cls, notification_id: str, **changes: Any) -> "BatchOperation":
        return cls(kind=UPDATE, notification_id=notification_id, changes=changes)


class NotificationStore(ABC):
    """Sink for generated notifications.

    The deriver depends only on these four operations, never on how the
    store keeps its records.
    """

    @abstractmethod
    def list(self, recipient_id: str) -> list[Notification]:
        """Return the recipient's notifications, newest first."""

    @abstractmethod
    def create_one(self, notification: Notification) -> Notification:
        """Create a single notification and return it with its id."""

    @abstractmethod
    def create_batch(self, operations: list[BatchOperation]) -> int:
        """Apply a batch of create/delete/update operations atomically."""

    @abstractmethod
    def delete_old_notifications(
        self, recipient_id: str, older_than_days: int, now: datetime | None = None
    ) -> int:
        """Delete read notifications older than ``older_than_days``."""


class InMemoryNotificationStore(NotificationStore):
    """Dictionary-backed notification store with a per-recipient index."""

    def __init__(self) -> None:
        self.notifications: dict[str, Notification] = {}
        self._recipient_notifications: dict[str, list[str]] = {}

    def list(self, recipient_id: str) -> list[Notification]:
        ids = self._recipient_notifications.get(recipient_id, [])
        found = [copy.deepcopy(self.notifications[nid]) for nid in ids]
        return sorted(found, key=lambda n: n.created_at or datetime.min, reverse=True)

    def create_one(self, notification: Notification) -> Notification:
        stored = copy.deepcopy(notification)
        stored.notification_id = stored.notification_id or str(uuid.uuid4())
        if stored.created_at is None:
            stored.created_at = datetime.now()
        if stored.notification_id in self.notifications:
            raise StoreError(f"Notification {stored.notification_id} already exists")

        self.notifications[stored.notification_id] = stored
        self._recipient_notifications.setdefault(stored.recipient_id, []).append(
            stored.notification_id
        )
        return copy.deepcopy(stored)

    def _check_batch(self, operations: list[BatchOperation]) -> None:
        # Replays the batch against the live ids so nothing is written
        # unless every operation would succeed.
        live = set(self.notifications)
        for op in operations:
            if op.kind == CREATE:
                if op.notification is None:
                    raise StoreError("Create operation without a notification")
                notification_id = op.notification.notification_id
                if notification_id is None:
                    continue
                if notification_id in live:
                    raise StoreError(f"Notification {notification_id} already exists")
                live.add(notification_id)
            elif op.kind == DELETE:
                live.discard(op.notification_id)
            elif op.kind == UPDATE:
                if op.notification_id not in live:
                    raise StoreError(f"Notification {op.notification_id} not found")
                unknown = set(op.changes) - UPDATABLE_FIELDS
                if unknown:
                    raise StoreError(f"Cannot update notification fields: {sorted(unknown)}")
            else:
                raise StoreError(f"Unknown batch operation: {op.kind}")

    def create_batch(self, operations: list[BatchOperation]) -> int:
        self._check_batch(operations)

        for op in operations:
            if op.kind == CREATE:
                self.create_one(op.notification)
            elif op.kind == DELETE:
                self.delete(op.notification_id)
            else:
                for name, value in op.changes.items():
                    setattr(self.notifications[op.notification_id], name, value)
        return len(operations)

    def delete(self, notification_id: str) -> None:
        """Delete a notification; unknown ids are ignored."""
        notification = self.notifications.pop(notification_id, None)
        if notification is not None:
            self._recipient_notifications[notification.recipient_id].remove(notification_id)

    def mark_as_read(self, notification_id: str) -> None:
        """Mark a single notification as read."""
        if notification_id not in self.notifications:
            raise StoreError(f"Notification {notification_id} not found")
        self.notifications[notification_id].read = True

    def delete_old_notifications(
        self, recipient_id: str, older_than_days: int, now: datetime | None = None
    ) -> int:
        cutoff = (now or datetime.now()) - timedelta(days=older_than_days)
        old = [
            n.notification_id
            for n in self.list(recipient_id)
            if n.read and n.created_at is not None and n.created_at < cutoff
        ]
        for notification_id in old:
            self.delete(notification_id)
        return len(old)

    def unread_count(self, recipient_id: str) -> int:
        """Number of unread notifications for a recipient."""
        return sum(1 for n in self.list(recipient_id) if not n.read)

    def summary(self) -> dict[str, int]:
        """Return summary counts."""
        return {
            "notifications": len(self.notifications),
            "recipients": len(self._recipient_notifications),
        }
