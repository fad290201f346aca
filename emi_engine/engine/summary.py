"""Read-only EMI plan summary."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from emi_engine.engine.urgency import days_until
from emi_engine.models.emi import EmiDetails, Installment
from emi_engine.money import ZERO


@dataclass
class EmiSummary:
    """Counts and amounts for one plan as of ``today``."""

    total_installments: int
    paid_installments: int
    pending_installments: int
    overdue_installments: int
    scheduled_amount: Decimal  # includes the down payment
    paid_amount: Decimal  # includes the down payment
    remaining_amount: Decimal
    unapplied_credit: Decimal
    payment_percentage: int
    next_due_installment: Installment | None
    last_payment_date: datetime | None
    down_payment: Decimal = ZERO


def summarize(emi: EmiDetails, today: date | datetime) -> EmiSummary:
    """Summarise a plan.

    ``pending_installments`` counts installments with money still due;
    ``paid_installments`` counts the rest, including ones whose shortfall was
    carried forward. The down payment counts as both scheduled and paid,
    so ``scheduled_amount == paid_amount + remaining_amount``.
    """
    pending = sorted(
        (i for i in emi.schedule if not i.is_settled),
        key=lambda i: (i.due_date, i.installment_number),
    )
    overdue = [i for i in pending if days_until(i.due_date, today) < 0]

    down_payment = emi.down_payment
    scheduled = down_payment + emi.total_scheduled
    paid = down_payment + emi.total_paid
    if scheduled > ZERO:
        percentage = int((paid / scheduled * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        percentage = 0

    return EmiSummary(
        total_installments=len(emi.schedule),
        paid_installments=len(emi.schedule) - len(pending),
        pending_installments=len(pending),
        overdue_installments=len(overdue),
        scheduled_amount=scheduled,
        paid_amount=paid,
        remaining_amount=emi.total_outstanding,
        unapplied_credit=emi.unapplied_credit,
        payment_percentage=percentage,
        next_due_installment=pending[0] if pending else None,
        last_payment_date=emi.last_payment_date,
        down_payment=down_payment,
    )
