"""EMI plan models: installments, payments and due-date changes."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from emi_engine.models.enums import PaymentMethod
from emi_engine.money import ZERO


@dataclass
class PaymentDetails:
    """Metadata supplied with a payment. Passed through, never interpreted."""

    method: PaymentMethod = PaymentMethod.CASH
    reference: str | None = None  # UPI / transaction id
    paid_at: datetime | None = None
    notes: str = ""
    recorded_by: str | None = None


@dataclass
class PaymentRecord:
    """One entry of an installment's payment history."""

    amount: Decimal
    paid_at: datetime
    method: PaymentMethod
    cumulative_paid: Decimal
    reference: str | None = None
    notes: str = ""
    recorded_by: str | None = None
    auto_adjusted: bool = False  # moved here from an overpayment


@dataclass
class DueDateChange:
    """Audit record of a rescheduled due date."""

    previous_due_date: date
    new_due_date: date
    changed_at: datetime
    changed_by: str | None = None
    reason: str = ""
    notes: str = ""


@dataclass
class DueDateChangeFlags:
    """Plan-wide due-date change counters."""

    total_changes: int = 0
    has_frequent_changes: bool = False
    flagged_for_review: bool = False
    last_change_date: datetime | None = None


@dataclass
class Installment:
    """A single scheduled EMI payment."""

    installment_number: int  # 1, 2, 3, ...
    due_date: date
    amount: Decimal
    paid: bool = False
    paid_amount: Decimal = ZERO
    partially_paid: bool = False
    carried_forward: Decimal = ZERO  # shortfall moved onto later installments
    interest_portion: Decimal = ZERO  # informational only
    principal_portion: Decimal = ZERO
    paid_at: datetime | None = None
    payment_history: list[PaymentRecord] = field(default_factory=list)
    due_date_history: list[DueDateChange] = field(default_factory=list)

    @property
    def outstanding(self) -> Decimal:
        """Amount still collectible on this installment."""
        if self.paid:
            return ZERO
        return self.amount - self.paid_amount - self.carried_forward

    @property
    def is_settled(self) -> bool:
        """Paid in full, or nothing left after a carried-forward shortfall."""
        return self.paid or self.outstanding <= ZERO

    @property
    def due_date_change_count(self) -> int:
        return len(self.due_date_history)


@dataclass
class EmiDetails:
    """Installment plan attached to an invoice with ``paymentStatus = emi``."""

    monthly_amount: Decimal
    start_date: date
    duration: int
    interest_rate: Decimal = ZERO  # percent per period
    processing_fee: Decimal = ZERO
    schedule: list[Installment] = field(default_factory=list)
    unapplied_credit: Decimal = ZERO
    last_payment_date: datetime | None = None
    down_payment: Decimal = ZERO  # collected up front, outside the schedule

    def get_installment(self, installment_number: int) -> Installment | None:
        """Return the installment with the given number, if any."""
        for installment in self.schedule:
            if installment.installment_number == installment_number:
                return installment
        return None

    @property
    def total_scheduled(self) -> Decimal:
        """Scheduled total net of shortfalls that were moved elsewhere."""
        return sum(
            (i.amount - i.carried_forward for i in self.schedule), ZERO
        )

    @property
    def total_paid(self) -> Decimal:
        return sum((i.paid_amount for i in self.schedule), ZERO)

    @property
    def total_outstanding(self) -> Decimal:
        return sum((i.outstanding for i in self.schedule), ZERO)

    @property
    def fully_paid(self) -> bool:
        return bool(self.schedule) and all(i.is_settled for i in self.schedule)
