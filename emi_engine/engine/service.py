"""Invoice-level EMI operations backed by an ``InvoiceStore``."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal

from emi_engine.config import EngineConfig
from emi_engine.engine.payments import PaymentOutcome, apply_payment
from emi_engine.engine.rescheduling import (
    change_due_date,
    change_monthly_amount,
    due_date_change_flags,
)
from emi_engine.engine.schedule import EmiTotals, build_emi_details, compute_totals
from emi_engine.engine.summary import EmiSummary, summarize
from emi_engine.engine.urgency import UrgencyLevel, pending_installments
from emi_engine.exceptions import EmiEngineError, InvalidStateError
from emi_engine.logging import log_context
from emi_engine.models.emi import EmiDetails, Installment, PaymentDetails
from emi_engine.models.enums import PaymentStatus
from emi_engine.models.invoice import Invoice
from emi_engine.money import ZERO
from emi_engine.store.invoices import InvoiceStore

logger = logging.getLogger(__name__)


class EmiService:
    """Load an invoice, apply an engine operation, save it back.

    Writes use the version read at the start of the operation, so a
    concurrent update to the same invoice raises ``ConcurrencyError``
    instead of being overwritten.

    Parameters
    ----------
    invoices : InvoiceStore
        Invoice persistence.
    config : EngineConfig | None
        Engine settings.
    clock : Callable[[], datetime]
        Source of "now" for summaries and pending lists.
    """

    def __init__(
        self,
        invoices: InvoiceStore,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.invoices = invoices
        self.config = config or EngineConfig()
        self._clock = clock

    def _load_emi(self, business_unit: str, invoice_id: str) -> tuple[Invoice, EmiDetails]:
        invoice = self.invoices.get(business_unit, invoice_id)
        if not invoice.is_emi:
            raise InvalidStateError(f"Invoice {invoice_id} is not an EMI invoice")
        return invoice, invoice.emi_details

    def create_emi_invoice(
        self,
        invoice: Invoice,
        monthly_amount: Decimal,
        start_date: date,
        duration: int,
        interest_rate: Decimal = ZERO,
        processing_fee: Decimal = ZERO,
        down_payment: Decimal = ZERO,
    ) -> Invoice:
        """Attach a fresh EMI plan to a copy of ``invoice`` and store it.

        ``invoice`` itself is left untouched, also when the store rejects it.
        """
        try:
            emi = build_emi_details(
                monthly_amount,
                start_date,
                duration,
                interest_rate,
                processing_fee,
                down_payment=down_payment,
            )
        except EmiEngineError as exc:
            raise exc.for_invoice(invoice.invoice_id)

        draft = copy.deepcopy(invoice)
        draft.emi_details = emi
        draft.payment_status = PaymentStatus.EMI
        draft.fully_paid = False
        stored = self.invoices.add(draft)
        logger.info(
            "Created EMI invoice %s: %d x %s from %s",
            stored.invoice_id,
            duration,
            emi.monthly_amount,
            start_date.isoformat(),
            extra=log_context(invoice_id=stored.invoice_id, business_unit=stored.business_unit),
        )
        return stored

    def record_installment_payment(
        self,
        business_unit: str,
        invoice_id: str,
        installment_number: int,
        amount: Decimal,
        details: PaymentDetails | None = None,
    ) -> PaymentOutcome:
        """Apply a payment to an installment and persist the new schedule."""
        invoice, emi = self._load_emi(business_unit, invoice_id)
        try:
            outcome = apply_payment(emi, installment_number, amount, details)
        except EmiEngineError as exc:
            raise exc.for_invoice(invoice_id)

        invoice.emi_details = outcome.emi_details
        invoice.fully_paid = outcome.emi_details.fully_paid
        self.invoices.save(invoice, expected_version=invoice.version)
        context = log_context(invoice_id=invoice_id, installment_number=installment_number)
        logger.info(
            "Recorded %s on invoice %s installment %d",
            outcome.impact.payment_amount,
            invoice_id,
            installment_number,
            extra=context,
        )
        if invoice.fully_paid:
            logger.info("Invoice %s is fully paid", invoice_id, extra=context)
        return outcome

    def change_due_date(
        self,
        business_unit: str,
        invoice_id: str,
        installment_number: int,
        new_due_date: date,
        changed_by: str | None = None,
        reason: str = "",
        notes: str = "",
    ) -> Invoice:
        """Reschedule an unpaid installment and refresh the plan's change flags."""
        invoice, emi = self._load_emi(business_unit, invoice_id)
        try:
            updated = change_due_date(
                emi,
                installment_number,
                new_due_date,
                changed_by=changed_by,
                reason=reason,
                notes=notes,
                changed_at=self._clock(),
            )
        except EmiEngineError as exc:
            raise exc.for_invoice(invoice_id)

        invoice.emi_details = updated
        invoice.due_date_change_flags = due_date_change_flags(updated, self.config.payments)
        if invoice.due_date_change_flags.flagged_for_review:
            logger.warning(
                "Invoice %s flagged for review after %d due date change(s)",
                invoice_id,
                invoice.due_date_change_flags.total_changes,
                extra=log_context(invoice_id=invoice_id, installment_number=installment_number),
            )
        return self.invoices.save(invoice, expected_version=invoice.version)

    def change_monthly_amount(
        self, business_unit: str, invoice_id: str, new_monthly_amount: Decimal
    ) -> Invoice:
        """Re-plan the invoice's outstanding balance at a new monthly amount."""
        invoice, emi = self._load_emi(business_unit, invoice_id)
        try:
            updated = change_monthly_amount(emi, new_monthly_amount)
        except EmiEngineError as exc:
            raise exc.for_invoice(invoice_id)

        invoice.emi_details = updated
        saved = self.invoices.save(invoice, expected_version=invoice.version)
        logger.info(
            "Invoice %s now pays %s a month over %d installment(s)",
            invoice_id,
            updated.monthly_amount,
            updated.duration,
            extra=log_context(invoice_id=invoice_id, monthly_amount=updated.monthly_amount),
        )
        return saved

    def get_summary(self, business_unit: str, invoice_id: str) -> EmiSummary:
        _, emi = self._load_emi(business_unit, invoice_id)
        return summarize(emi, self._clock())

    def get_pending_installments(
        self, business_unit: str, invoice_id: str
    ) -> list[tuple[Installment, UrgencyLevel]]:
        _, emi = self._load_emi(business_unit, invoice_id)
        return pending_installments(emi, self._clock())

    def get_totals(self, business_unit: str, invoice_id: str) -> EmiTotals:
        invoice, emi = self._load_emi(business_unit, invoice_id)
        return compute_totals(emi, invoice.total_amount)
