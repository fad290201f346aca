"""Tests for plan summaries."""

from datetime import date, datetime
from decimal import Decimal

from emi_engine.engine.payments import apply_payment
from emi_engine.engine.schedule import build_emi_details
from emi_engine.engine.summary import summarize
from emi_engine.models import EmiDetails, PaymentDetails
from emi_engine.money import ZERO


class TestSummarize:
    """Tests for summarize."""

    def test_fresh_plan(self, sample_emi: EmiDetails, today: date) -> None:
        summary = summarize(sample_emi, today)

        assert summary.total_installments == 3
        assert summary.paid_installments == 0
        assert summary.pending_installments == 3
        assert summary.overdue_installments == 0
        assert summary.scheduled_amount == Decimal("3000.00")
        assert summary.remaining_amount == Decimal("3000.00")
        assert summary.payment_percentage == 0
        assert summary.next_due_installment.installment_number == 1
        assert summary.last_payment_date is None

    def test_after_payment(self, sample_emi: EmiDetails) -> None:
        paid_at = datetime(2024, 1, 15, 11, 0)
        emi = apply_payment(
            sample_emi, 1, Decimal("1000"), PaymentDetails(paid_at=paid_at)
        ).emi_details

        summary = summarize(emi, date(2024, 3, 1))

        assert summary.paid_installments == 1
        assert summary.pending_installments == 2
        assert summary.overdue_installments == 1
        assert summary.paid_amount == Decimal("1000.00")
        assert summary.remaining_amount == Decimal("2000.00")
        assert summary.payment_percentage == 33
        assert summary.next_due_installment.installment_number == 2
        assert summary.last_payment_date == paid_at

    def test_carried_installment_counts_as_closed(self, sample_emi: EmiDetails) -> None:
        emi = apply_payment(sample_emi, 1, Decimal("600")).emi_details
        summary = summarize(emi, date(2024, 1, 15))

        assert summary.paid_installments == 1
        assert summary.pending_installments == 2
        assert summary.scheduled_amount == Decimal("3000.00")
        assert summary.paid_amount + summary.remaining_amount == summary.scheduled_amount
        assert summary.payment_percentage == 20

    def test_fully_paid(self, sample_emi: EmiDetails) -> None:
        emi = apply_payment(sample_emi, 1, Decimal("3000")).emi_details
        summary = summarize(emi, date(2024, 1, 15))

        assert summary.pending_installments == 0
        assert summary.next_due_installment is None
        assert summary.remaining_amount == ZERO
        assert summary.payment_percentage == 100

    def test_down_payment_counts_as_paid(self, today: date) -> None:
        emi = build_emi_details(
            Decimal("1000"), date(2024, 1, 15), 3, down_payment=Decimal("1000")
        )

        summary = summarize(emi, today)

        assert summary.down_payment == Decimal("1000.00")
        assert summary.scheduled_amount == Decimal("4000.00")
        assert summary.paid_amount == Decimal("1000.00")
        assert summary.remaining_amount == Decimal("3000.00")
        assert summary.payment_percentage == 25

        emi = apply_payment(emi, 1, Decimal("1000")).emi_details
        summary = summarize(emi, today)
        assert summary.paid_amount == Decimal("2000.00")
        assert summary.payment_percentage == 50
