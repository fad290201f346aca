"""Enumeration types for invoice, installment and notification records."""

from enum import Enum


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    EMI = "emi"
    FINANCE = "finance"
    BANK_TRANSFER = "bank_transfer"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


class Urgency(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    SOON = "soon"
    UPCOMING = "upcoming"
    NONE = "none"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationType(str, Enum):
    EMI_DUE = "emi_due"
    EMI_UPCOMING = "emi_upcoming"
    DELIVERY_OVERDUE = "delivery_overdue"
    DELIVERY_TODAY = "delivery_today"
    DELIVERY_SCHEDULED = "delivery_scheduled"


class NotificationCategory(str, Enum):
    EMI = "emi"
    DELIVERY = "delivery"
    GENERAL = "general"
