"""Notification records produced by the notification deriver."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from emi_engine.models.enums import NotificationCategory, NotificationType, Severity

EMI_TYPES = frozenset({NotificationType.EMI_DUE, NotificationType.EMI_UPCOMING})
DELIVERY_TYPES = frozenset(
    {
        NotificationType.DELIVERY_OVERDUE,
        NotificationType.DELIVERY_TODAY,
        NotificationType.DELIVERY_SCHEDULED,
    }
)
GENERATED_TYPES = EMI_TYPES | DELIVERY_TYPES


@dataclass
class Notification:
    """A dashboard notification for one recipient."""

    recipient_id: str
    type: NotificationType
    category: NotificationCategory
    priority: Severity
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    read: bool = False
    notification_id: str | None = None  # assigned by the store

    @property
    def composite_key(self) -> tuple:
        """Identity of the underlying event, used for deduplication."""
        data = self.data
        if self.type in EMI_TYPES:
            return (
                data.get("customer_id"),
                data.get("invoice_number"),
                data.get("installment_number"),
                data.get("due_date"),
            )
        if self.type in DELIVERY_TYPES:
            return (data.get("order_id"), data.get("scheduled_date"))
        created = self.created_at.date() if self.created_at else None
        return (self.type, data.get("customer_id"), created)

    def content(self) -> tuple:
        """Everything except store-assigned identity and timestamps."""
        return (
            self.recipient_id,
            self.type,
            self.category,
            self.priority,
            self.title,
            self.message,
            tuple(sorted(self.data.items())),
        )
