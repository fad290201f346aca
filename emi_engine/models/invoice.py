"""Invoice aggregate (payment-relevant fields only)."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from emi_engine.models.emi import DueDateChangeFlags, EmiDetails
from emi_engine.models.enums import DeliveryStatus, PaymentStatus


@dataclass
class Invoice:
    """Sales invoice as stored per business unit."""

    invoice_id: str
    invoice_number: str
    customer_id: str
    customer_name: str
    total_amount: Decimal
    payment_status: PaymentStatus
    emi_details: EmiDetails | None = None
    business_unit: str = "default"  # tenant / store namespace
    delivery_status: DeliveryStatus | None = None
    scheduled_delivery_date: date | None = None
    customer_phone: str | None = None
    customer_address: str | None = None
    item_count: int = 0
    due_date_change_flags: DueDateChangeFlags | None = None
    fully_paid: bool = False
    version: int = 0  # bumped by the store on every save
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_emi(self) -> bool:
        return self.payment_status == PaymentStatus.EMI and self.emi_details is not None
