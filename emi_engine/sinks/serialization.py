"""Shared serialization utilities for sinks and stored documents.

Documents use camelCase keys (``installmentNumber``, ``emiDetails``), with
Decimals as strings and dates as ISO-8601.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from dateutil.parser import isoparse

from emi_engine.models.emi import (
    DueDateChange,
    DueDateChangeFlags,
    EmiDetails,
    Installment,
    PaymentRecord,
)
from emi_engine.models.enums import DeliveryStatus, PaymentMethod, PaymentStatus
from emi_engine.models.invoice import Invoice
from emi_engine.money import money, to_decimal


def to_camel(name: str) -> str:
    """``installment_number`` -> ``installmentNumber``."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if is_dataclass(obj):
        return to_document(obj)
    elif isinstance(obj, dict):
        return obj
    else:
        return {"value": str(obj)}


def to_document(obj: Any) -> dict:
    """Convert a dataclass to a camelCase document.

    Uses ``dataclasses.fields()`` + ``getattr`` so nested dataclasses are
    converted recursively with their own camelCase keys.
    """
    return {to_camel(f.name): serialize_value(getattr(obj, f.name)) for f in fields(obj)}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if is_dataclass(value):
        return to_document(value)
    elif isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def _date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return isoparse(value).date()


def _datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return isoparse(value)


def _payment_record(doc: dict) -> PaymentRecord:
    return PaymentRecord(
        amount=money(doc["amount"]),
        paid_at=_datetime(doc["paidAt"]),
        method=PaymentMethod(doc.get("method", PaymentMethod.CASH.value)),
        cumulative_paid=money(doc.get("cumulativePaid")),
        reference=doc.get("reference"),
        notes=doc.get("notes", ""),
        recorded_by=doc.get("recordedBy"),
        auto_adjusted=doc.get("autoAdjusted", False),
    )


def _due_date_change(doc: dict) -> DueDateChange:
    return DueDateChange(
        previous_due_date=_date(doc["previousDueDate"]),
        new_due_date=_date(doc["newDueDate"]),
        changed_at=_datetime(doc["changedAt"]),
        changed_by=doc.get("changedBy"),
        reason=doc.get("reason", ""),
        notes=doc.get("notes", ""),
    )


def installment_from_document(doc: dict) -> Installment:
    """Build an ``Installment`` from its stored document."""
    return Installment(
        installment_number=int(doc["installmentNumber"]),
        due_date=_date(doc["dueDate"]),
        amount=money(doc["amount"]),
        paid=doc.get("paid", False),
        paid_amount=money(doc.get("paidAmount")),
        partially_paid=doc.get("partiallyPaid", False),
        carried_forward=money(doc.get("carriedForward")),
        interest_portion=money(doc.get("interestPortion")),
        principal_portion=money(doc.get("principalPortion")),
        paid_at=_datetime(doc.get("paidAt")),
        payment_history=[_payment_record(p) for p in doc.get("paymentHistory", [])],
        due_date_history=[_due_date_change(c) for c in doc.get("dueDateHistory", [])],
    )


def emi_details_from_document(doc: dict) -> EmiDetails:
    """Build ``EmiDetails`` from its stored document."""
    return EmiDetails(
        monthly_amount=money(doc["monthlyAmount"]),
        start_date=_date(doc["startDate"]),
        duration=int(doc["duration"]),
        interest_rate=to_decimal(doc.get("interestRate", 0), field="interestRate"),
        processing_fee=money(doc.get("processingFee")),
        schedule=[installment_from_document(i) for i in doc.get("schedule", [])],
        unapplied_credit=money(doc.get("unappliedCredit")),
        last_payment_date=_datetime(doc.get("lastPaymentDate")),
        down_payment=money(doc.get("downPayment"), field="downPayment"),
    )


def invoice_from_document(doc: dict) -> Invoice:
    """Build an ``Invoice`` from its stored camelCase document."""
    emi = doc.get("emiDetails")
    flags = doc.get("dueDateChangeFlags")
    delivery_status = doc.get("deliveryStatus")
    return Invoice(
        invoice_id=doc["invoiceId"],
        invoice_number=doc["invoiceNumber"],
        customer_id=doc["customerId"],
        customer_name=doc["customerName"],
        total_amount=money(doc["totalAmount"]),
        payment_status=PaymentStatus(doc["paymentStatus"]),
        emi_details=emi_details_from_document(emi) if emi else None,
        business_unit=doc.get("businessUnit", "default"),
        delivery_status=DeliveryStatus(delivery_status) if delivery_status else None,
        scheduled_delivery_date=_date(doc.get("scheduledDeliveryDate")),
        customer_phone=doc.get("customerPhone"),
        customer_address=doc.get("customerAddress"),
        item_count=doc.get("itemCount", 0),
        due_date_change_flags=(
            DueDateChangeFlags(
                total_changes=flags.get("totalChanges", 0),
                has_frequent_changes=flags.get("hasFrequentChanges", False),
                flagged_for_review=flags.get("flaggedForReview", False),
                last_change_date=_datetime(flags.get("lastChangeDate")),
            )
            if flags
            else None
        ),
        fully_paid=doc.get("fullyPaid", False),
        version=doc.get("version", 0),
        created_at=_datetime(doc.get("createdAt")),
        updated_at=_datetime(doc.get("updatedAt")),
    )
