"""EMI portfolio scenario: invoices, payments and dashboard notifications."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any

from emi_engine.config import EngineConfig, ScenarioConfig
from emi_engine.engine.notifications import GenerationResult, NotificationDeriver
from emi_engine.engine.summary import summarize
from emi_engine.generators.invoice import InvoiceGenerator, PaymentBehavior
from emi_engine.models.enums import DeliveryStatus, PaymentStatus
from emi_engine.models.notification import Notification
from emi_engine.money import ZERO
from emi_engine.store.invoices import InvoiceStore
from emi_engine.store.notifications import InMemoryNotificationStore

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT = "admin"


class EmiPortfolioScenario:
    """Generate an EMI portfolio and the notifications it produces.

    This scenario creates:
    - EMI invoices with plans started in the past
    - Scheduled-delivery invoices around the reference date
    - Payments per customer behaviour (good, partial, over, defaulter)
    - The EMI and delivery notifications due as of the reference date
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        reference_date: date | None = None,
    ) -> None:
        """Initialize the scenario.

        Parameters
        ----------
        config : EngineConfig | None
            Engine configuration. ``config.scenario`` supplies the portfolio
            size and payer mix; defaults apply when it is missing.
        reference_date : date | None
            "Today" for the whole run; defaults to ``date.today()``.
        """
        self.config = config or EngineConfig()
        self.scenario = self.config.scenario or ScenarioConfig(name="emi_portfolio")
        self.reference_date = reference_date or date.today()
        self.now = datetime.combine(self.reference_date, time(hour=9))
        self.business_unit = self.config.business_unit
        self.recipient_id = self.config.recipient_id or DEFAULT_RECIPIENT

        self.invoice_store = InvoiceStore()
        self.notification_store = InMemoryNotificationStore()
        self.deriver = NotificationDeriver(
            self.notification_store,
            self.config.notifications,
            self.config.payments,
            clock=self._clock,
        )
        self._invoice_gen = InvoiceGenerator(seed=self.config.seed)
        self._payment_behavior = PaymentBehavior(seed=self.config.seed)
        self.behaviors: dict[str, str] = {}

    def _clock(self) -> datetime:
        return self.now

    def generate(self) -> InvoiceStore:
        """Generate invoices and apply payments.

        Returns
        -------
        InvoiceStore
            Store containing all generated invoices.
        """
        num_delivery = int(self.scenario.num_invoices * self.scenario.delivery_rate)
        num_emi = self.scenario.num_invoices - num_delivery
        logger.info(
            "Starting EMI portfolio scenario: %d EMI invoices, %d deliveries",
            num_emi,
            num_delivery,
        )

        for _ in range(num_emi):
            invoice = self._invoice_gen.generate_emi_invoice(
                self.business_unit, self.reference_date
            )
            stored = self.invoice_store.add(invoice)
            behavior = self._payment_behavior.choose(
                self.scenario.good_payer_rate,
                self.scenario.partial_payer_rate,
                self.scenario.over_payer_rate,
                self.scenario.defaulter_rate,
            )
            self.behaviors[stored.invoice_id] = behavior

            emi, impacts = self._payment_behavior.apply(
                stored.emi_details, behavior, self.reference_date
            )
            if impacts:
                stored.emi_details = emi
                stored.fully_paid = emi.fully_paid
                self.invoice_store.save(stored, expected_version=stored.version)

        for _ in range(num_delivery):
            self.invoice_store.add(
                self._invoice_gen.generate_delivery_invoice(self.business_unit, self.reference_date)
            )

        logger.info("Generated %d invoices", len(self.invoice_store.invoices))
        return self.invoice_store

    def derive_notifications(self) -> GenerationResult:
        """Rebuild the recipient's notifications from the stored invoices."""
        invoices = self.invoice_store.query(self.business_unit)
        return self.deriver.run(invoices, self.recipient_id)

    @property
    def notifications(self) -> list[Notification]:
        return self.notification_store.list(self.recipient_id)

    def export(self, sinks: list[Any]) -> None:
        """Export invoices and notifications to sinks.

        Parameters
        ----------
        sinks : list[Any]
            Sink instances exposing ``write_batch(entity_type, records)``.
        """
        invoices = self.invoice_store.query(self.business_unit)
        for sink in sinks:
            sink.write_batch("invoices", invoices)
            sink.write_batch("notifications", self.notifications)

        logger.info("Exported EMI portfolio to %d sinks", len(sinks))

    def get_portfolio_summary(self) -> dict[str, Any]:
        """Get summary statistics for the portfolio.

        Returns
        -------
        dict[str, Any]
            Portfolio summary statistics.
        """
        emi_invoices = self.invoice_store.query(
            self.business_unit, payment_status=PaymentStatus.EMI
        )
        if not emi_invoices:
            return {}

        summaries = [summarize(i.emi_details, self.now) for i in emi_invoices]
        behavior_counts: dict[str, int] = {}
        for behavior in self.behaviors.values():
            behavior_counts[behavior] = behavior_counts.get(behavior, 0) + 1

        notification_counts: dict[str, int] = {}
        for notification in self.notifications:
            key = notification.type.value
            notification_counts[key] = notification_counts.get(key, 0) + 1

        return {
            "emi_invoices": len(emi_invoices),
            "fully_paid": sum(1 for i in emi_invoices if i.fully_paid),
            "scheduled_amount": float(sum((s.scheduled_amount for s in summaries), ZERO)),
            "paid_amount": float(sum((s.paid_amount for s in summaries), ZERO)),
            "remaining_amount": float(sum((s.remaining_amount for s in summaries), ZERO)),
            "overdue_installments": sum(s.overdue_installments for s in summaries),
            "scheduled_deliveries": len(
                self.invoice_store.query(
                    self.business_unit, delivery_status=DeliveryStatus.SCHEDULED
                )
            ),
            "payer_behavior_distribution": behavior_counts,
            "notification_type_distribution": notification_counts,
        }
