"""Notification event derivation.

Every run rebuilds a recipient's EMI and delivery notifications from the
current invoices: existing generated notifications are deleted, the
notifications due as of one clock reading are derived, duplicates are
dropped, and the remainder is written in one batch. Re-running against
unchanged invoices with the same clock yields the same notification
content.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from emi_engine.config import NotificationConfig, PaymentConfig
from emi_engine.engine.urgency import UrgencyLevel, classify, classify_days, days_until
from emi_engine.exceptions import PartialBatchFailure, StoreError
from emi_engine.models.enums import (
    DeliveryStatus,
    NotificationCategory,
    NotificationType,
    Severity,
    Urgency,
)
from emi_engine.models.invoice import Invoice
from emi_engine.models.notification import (
    DELIVERY_TYPES,
    EMI_TYPES,
    GENERATED_TYPES,
    Notification,
)
from emi_engine.money import format_currency
from emi_engine.store.notifications import BatchOperation, NotificationStore

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Counts from one derivation run."""

    deleted: int = 0
    emi: int = 0
    upcoming: int = 0
    delivery: int = 0
    duplicates_removed: int = 0
    created: int = 0
    failure: PartialBatchFailure | None = None

    @property
    def skipped(self) -> int:
        return self.failure.skipped if self.failure else 0


def _days(n: int) -> str:
    return f"{n} day" if n == 1 else f"{n} days"


def _newest(notification: Notification) -> datetime:
    return notification.created_at or datetime.min


def deduplicate(notifications: list[Notification]) -> tuple[list[Notification], int]:
    """Keep the newest notification per composite key.

    Ties keep the first one seen. Returns the survivors in their original
    order and the number removed.
    """
    best: dict[tuple, Notification] = {}
    for notification in notifications:
        key = notification.composite_key
        kept = best.get(key)
        if kept is None or _newest(notification) > _newest(kept):
            best[key] = notification

    survivors = {id(n) for n in best.values()}
    kept = [n for n in notifications if id(n) in survivors]
    return kept, len(notifications) - len(kept)


class NotificationDeriver:
    """Derive EMI and delivery notifications for one recipient.

    Parameters
    ----------
    store : NotificationStore
        Where notifications are read from and written to.
    config : NotificationConfig | None
        Retention and read-state settings.
    payments : PaymentConfig | None
        Used for the currency symbol in messages.
    clock : Callable[[], datetime]
        Read once per run; every classification in the run uses that value.
    """

    def __init__(
        self,
        store: NotificationStore,
        config: NotificationConfig | None = None,
        payments: PaymentConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.config = config or NotificationConfig()
        self.payments = payments or PaymentConfig()
        self._clock = clock

    def run(self, invoices: Iterable[Invoice], recipient_id: str) -> GenerationResult:
        """Replace the recipient's generated notifications.

        Raises
        ------
        StoreError
            If the old notifications cannot be deleted, or if every
            notification fails to be created.
        """
        now = self._clock()
        invoices = list(invoices)
        result = GenerationResult()

        read_keys = self._read_keys(recipient_id) if self.config.preserve_read_state else set()
        result.deleted = self.clear_generated(recipient_id)

        emi = self.emi_due_notifications(invoices, recipient_id, now)
        upcoming = self.emi_upcoming_notifications(invoices, recipient_id, now)
        delivery = self.delivery_notifications(invoices, recipient_id, now)
        result.emi, result.upcoming, result.delivery = len(emi), len(upcoming), len(delivery)

        notifications, result.duplicates_removed = deduplicate(emi + upcoming + delivery)
        for notification in notifications:
            if notification.composite_key in read_keys:
                notification.read = True

        result.created, result.failure = self._create_all(notifications)
        logger.info(
            "Generated notifications for %s: %d emi, %d upcoming, %d delivery, "
            "%d created, %d deleted",
            recipient_id,
            result.emi,
            result.upcoming,
            result.delivery,
            result.created,
            result.deleted,
        )
        return result

    def clear_generated(self, recipient_id: str) -> int:
        """Delete every EMI and delivery notification of the recipient."""
        existing = [n for n in self.store.list(recipient_id) if n.type in GENERATED_TYPES]
        if not existing:
            return 0
        ops = [BatchOperation.delete(n.notification_id) for n in existing]
        self.store.create_batch(ops)
        logger.debug("Deleted %d generated notification(s) for %s", len(ops), recipient_id)
        return len(ops)

    # --- derivation ----------------------------------------------------

    def emi_due_notifications(
        self, invoices: list[Invoice], recipient_id: str, now: datetime
    ) -> list[Notification]:
        """One notification per unpaid installment overdue or due within 7 days."""
        notifications = []
        for invoice in invoices:
            if not invoice.is_emi or invoice.emi_details is None:
                continue
            for installment in invoice.emi_details.schedule:
                level = classify(installment, now)
                if level.in_due_window:
                    notifications.append(
                        self._emi_notification(invoice, installment, level, recipient_id, now)
                    )
        return notifications

    def emi_upcoming_notifications(
        self, invoices: list[Invoice], recipient_id: str, now: datetime
    ) -> list[Notification]:
        """At most one 8-30 day notification per invoice, for the nearest installment."""
        notifications = []
        for invoice in invoices:
            if not invoice.is_emi or invoice.emi_details is None:
                continue
            candidates = [
                (level.days_diff, installment.installment_number, installment, level)
                for installment in invoice.emi_details.schedule
                for level in [classify(installment, now)]
                if level.in_upcoming_window
            ]
            if not candidates:
                continue
            _, _, installment, level = min(candidates, key=lambda c: (c[0], c[1]))
            notifications.append(
                self._emi_notification(invoice, installment, level, recipient_id, now)
            )
        return notifications

    def delivery_notifications(
        self, invoices: list[Invoice], recipient_id: str, now: datetime
    ) -> list[Notification]:
        """Notifications for scheduled deliveries overdue or within 7 days."""
        notifications = []
        for invoice in invoices:
            if (
                invoice.delivery_status != DeliveryStatus.SCHEDULED
                or invoice.scheduled_delivery_date is None
            ):
                continue
            level = classify_days(days_until(invoice.scheduled_delivery_date, now))
            if level.in_due_window:
                notifications.append(
                    self._delivery_notification(invoice, level, recipient_id, now)
                )
        return notifications

    def _emi_notification(self, invoice, installment, level, recipient_id, now) -> Notification:
        amount = self._money(installment.outstanding)
        name = invoice.customer_name
        days = abs(level.days_diff)

        if level.urgency == Urgency.OVERDUE:
            title = "EMI Payment Overdue"
            message = f"EMI payment of {amount} is {_days(days)} overdue for {name}"
        elif level.urgency == Urgency.TODAY:
            title = "EMI Payment Due Today"
            message = f"EMI payment of {amount} is due today for {name}"
        elif level.urgency == Urgency.SOON:
            title = "EMI Payment Due Soon"
            message = f"EMI payment of {amount} is due in {_days(days)} for {name}"
        else:
            title = "Upcoming EMI Payment"
            message = f"EMI payment of {amount} is due in {_days(days)} for {name}"

        return Notification(
            recipient_id=recipient_id,
            type=NotificationType.EMI_DUE if level.in_due_window else NotificationType.EMI_UPCOMING,
            category=NotificationCategory.EMI,
            priority=level.severity,
            title=title,
            message=message,
            data={
                "customer_id": invoice.customer_id,
                "customer_name": name,
                "invoice_id": invoice.invoice_id,
                "invoice_number": invoice.invoice_number,
                "installment_number": installment.installment_number,
                "due_date": installment.due_date.isoformat(),
                "amount": str(installment.outstanding),
                "phone_number": invoice.customer_phone,
                "is_overdue": level.urgency == Urgency.OVERDUE,
                "days_diff": days,
                "urgency_level": level.urgency.value,
            },
            created_at=now,
        )

    def _delivery_notification(
        self, invoice: Invoice, level: UrgencyLevel, recipient_id: str, now: datetime
    ) -> Notification:
        name = invoice.customer_name
        days = abs(level.days_diff)

        if level.urgency == Urgency.OVERDUE:
            kind, priority = NotificationType.DELIVERY_OVERDUE, Severity.HIGH
            title, message = "Delivery Overdue", f"Delivery for {name} is {_days(days)} overdue"
        elif level.urgency == Urgency.TODAY:
            kind, priority = NotificationType.DELIVERY_TODAY, Severity.HIGH
            title, message = "Delivery Scheduled Today", f"Delivery scheduled today for {name}"
        elif level.urgency == Urgency.SOON:
            kind, priority = NotificationType.DELIVERY_SCHEDULED, Severity.MEDIUM
            title = "Delivery Due Soon"
            message = f"Delivery scheduled in {_days(days)} for {name}"
        else:
            kind, priority = NotificationType.DELIVERY_SCHEDULED, Severity.MEDIUM
            title = "Upcoming Delivery"
            message = f"Delivery scheduled in {_days(days)} for {name}"

        return Notification(
            recipient_id=recipient_id,
            type=kind,
            category=NotificationCategory.DELIVERY,
            priority=priority,
            title=title,
            message=message,
            data={
                "customer_id": invoice.customer_id,
                "customer_name": name,
                "order_id": invoice.invoice_id,
                "order_number": invoice.invoice_number,
                "scheduled_date": invoice.scheduled_delivery_date.isoformat(),
                "address": invoice.customer_address,
                "phone_number": invoice.customer_phone,
                "item_count": invoice.item_count,
                "status": invoice.delivery_status.value,
                "is_overdue": level.urgency == Urgency.OVERDUE,
                "days_diff": days,
                "urgency_level": level.urgency.value,
            },
            created_at=now,
        )

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self.payments.currency_symbol)

    # --- writing -------------------------------------------------------

    def _read_keys(self, recipient_id: str) -> set[tuple]:
        return {
            n.composite_key
            for n in self.store.list(recipient_id)
            if n.read and n.type in GENERATED_TYPES
        }

    def _create_all(
        self, notifications: list[Notification]
    ) -> tuple[int, PartialBatchFailure | None]:
        if not notifications:
            return 0, None
        try:
            self.store.create_batch([BatchOperation.create(n) for n in notifications])
            return len(notifications), None
        except Exception as exc:
            logger.warning(
                "Batch create of %d notification(s) failed, creating one at a time: %s",
                len(notifications),
                exc,
            )

        created = 0
        errors: list[str] = []
        last_error: Exception | None = None
        for notification in notifications:
            try:
                self.store.create_one(notification)
                created += 1
            except Exception as exc:
                last_error = exc
                errors.append(f"{notification.composite_key}: {exc}")
                logger.error(
                    "Failed to create notification %s: %s", notification.composite_key, exc
                )

        if created == 0:
            raise StoreError(
                f"Failed to create any of {len(notifications)} notification(s)"
            ) from last_error
        if errors:
            return created, PartialBatchFailure(len(errors), errors)
        return created, None

    # --- cleanup -------------------------------------------------------

    def _delete(self, notifications: list[Notification]) -> int:
        if not notifications:
            return 0
        self.store.create_batch([BatchOperation.delete(n.notification_id) for n in notifications])
        return len(notifications)

    def cleanup_duplicate_notifications(self, recipient_id: str) -> int:
        """Delete stored duplicates, keeping the newest per composite key."""
        existing = self.store.list(recipient_id)
        kept, _ = deduplicate(existing)
        kept_ids = {n.notification_id for n in kept}
        removed = self._delete([n for n in existing if n.notification_id not in kept_ids])
        if removed:
            logger.info("Removed %d duplicate notification(s) for %s", removed, recipient_id)
        return removed

    def cleanup_paid_installment_notifications(
        self, invoices: Iterable[Invoice], recipient_id: str
    ) -> int:
        """Delete EMI notifications whose installment is now settled or gone."""
        by_invoice = {i.invoice_id: i for i in invoices}
        stale = []
        for notification in self.store.list(recipient_id):
            if notification.type not in EMI_TYPES:
                continue
            invoice = by_invoice.get(notification.data.get("invoice_id"))
            if invoice is None or invoice.emi_details is None:
                continue
            installment = invoice.emi_details.get_installment(
                notification.data.get("installment_number")
            )
            if installment is None or installment.is_settled:
                stale.append(notification)
        removed = self._delete(stale)
        if removed:
            logger.info("Removed %d paid installment notification(s)", removed)
        return removed

    def cleanup_delivered_notifications(
        self, invoices: Iterable[Invoice], recipient_id: str
    ) -> int:
        """Delete delivery notifications for orders no longer scheduled."""
        closed = {
            i.invoice_id
            for i in invoices
            if i.delivery_status in (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED)
        }
        stale = [
            n
            for n in self.store.list(recipient_id)
            if n.type in DELIVERY_TYPES and n.data.get("order_id") in closed
        ]
        removed = self._delete(stale)
        if removed:
            logger.info("Removed %d delivered order notification(s)", removed)
        return removed

    def cleanup_old_notifications(self, recipient_id: str) -> int:
        """Delete read notifications past the retention window."""
        return self.store.delete_old_notifications(
            recipient_id, self.config.old_notification_days, self._clock()
        )
