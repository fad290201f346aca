"""Domain records for invoices, EMI plans and notifications."""

from emi_engine.models.emi import (
    DueDateChange,
    DueDateChangeFlags,
    EmiDetails,
    Installment,
    PaymentDetails,
    PaymentRecord,
)
from emi_engine.models.enums import (
    DeliveryStatus,
    NotificationCategory,
    NotificationType,
    PaymentMethod,
    PaymentStatus,
    Severity,
    Urgency,
)
from emi_engine.models.invoice import Invoice
from emi_engine.models.notification import Notification

__all__ = [
    "DeliveryStatus",
    "DueDateChange",
    "DueDateChangeFlags",
    "EmiDetails",
    "Installment",
    "Invoice",
    "Notification",
    "NotificationCategory",
    "NotificationType",
    "PaymentDetails",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentStatus",
    "Severity",
    "Urgency",
]
