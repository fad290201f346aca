"""Tests for the invoice and notification stores."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from emi_engine.exceptions import (
    ConcurrencyError,
    InvalidStateError,
    InvoiceNotFoundError,
    StoreError,
)
from emi_engine.models import (
    DeliveryStatus,
    Notification,
    NotificationCategory,
    NotificationType,
    PaymentStatus,
    Severity,
)
from emi_engine.store import BatchOperation, InMemoryNotificationStore, InvoiceStore


def notification(recipient: str = "owner", **kwargs) -> Notification:
    fields = dict(
        recipient_id=recipient,
        type=NotificationType.EMI_DUE,
        category=NotificationCategory.EMI,
        priority=Severity.HIGH,
        title="EMI Payment Due Today",
        message="EMI payment of ₹1,000.00 is due today for Asha Verma",
    )
    fields.update(kwargs)
    return Notification(**fields)


class TestInvoiceStore:
    """Tests for InvoiceStore."""

    def test_add_sets_version(self, invoice_store: InvoiceStore, make_invoice) -> None:
        stored = invoice_store.add(make_invoice())

        assert stored.version == 1
        assert stored.created_at is not None
        assert invoice_store.summary() == {"invoices": 1, "emi_invoices": 1, "business_units": 1}

    def test_add_duplicate_rejected(self, invoice_store: InvoiceStore, make_invoice) -> None:
        invoice_store.add(make_invoice())

        with pytest.raises(InvalidStateError):
            invoice_store.add(make_invoice())

    def test_same_id_in_other_business_unit(
        self, invoice_store: InvoiceStore, make_invoice
    ) -> None:
        invoice_store.add(make_invoice())
        invoice_store.add(make_invoice(business_unit="branch-2"))

        assert invoice_store.get("branch-2", "inv-001").business_unit == "branch-2"
        with pytest.raises(InvoiceNotFoundError):
            invoice_store.get("branch-3", "inv-001")

    def test_get_returns_copy(self, invoice_store: InvoiceStore, make_invoice) -> None:
        invoice_store.add(make_invoice())
        loaded = invoice_store.get("default", "inv-001")
        loaded.emi_details.schedule[0].paid = True

        assert invoice_store.get("default", "inv-001").emi_details.schedule[0].paid is False

    def test_save_bumps_version(self, invoice_store: InvoiceStore, make_invoice) -> None:
        stored = invoice_store.add(make_invoice())
        stored.fully_paid = True

        saved = invoice_store.save(stored, expected_version=1)

        assert saved.version == 2
        assert invoice_store.get("default", "inv-001").fully_paid is True

    def test_stale_write_rejected(self, invoice_store: InvoiceStore, make_invoice) -> None:
        invoice_store.add(make_invoice())
        first = invoice_store.get("default", "inv-001")
        second = invoice_store.get("default", "inv-001")

        invoice_store.save(first, expected_version=first.version)
        with pytest.raises(ConcurrencyError, match="expected 1"):
            invoice_store.save(second, expected_version=second.version)

    def test_save_unknown(self, invoice_store: InvoiceStore, make_invoice) -> None:
        with pytest.raises(InvoiceNotFoundError):
            invoice_store.save(make_invoice(), expected_version=0)

    def test_query_filters(self, invoice_store: InvoiceStore, make_invoice) -> None:
        invoice_store.add(make_invoice("inv-1"))
        invoice_store.add(
            make_invoice(
                "inv-2",
                payment_status=PaymentStatus.PAID,
                emi_details=None,
                delivery_status=DeliveryStatus.SCHEDULED,
            )
        )

        assert [i.invoice_id for i in invoice_store.query("default", PaymentStatus.EMI)] == ["inv-1"]
        assert [
            i.invoice_id
            for i in invoice_store.query("default", delivery_status=DeliveryStatus.SCHEDULED)
        ] == ["inv-2"]
        assert len(invoice_store.query("default")) == 2
        assert invoice_store.query("elsewhere") == []

    def test_customer_invoices(self, invoice_store: InvoiceStore, make_invoice) -> None:
        invoice_store.add(make_invoice("inv-1"))
        invoice_store.add(make_invoice("inv-2"))
        invoice_store.add(make_invoice("inv-3", customer_id="cust-002"))

        found = invoice_store.get_customer_invoices("default", "cust-001")
        assert [i.invoice_id for i in found] == ["inv-1", "inv-2"]


class TestInMemoryNotificationStore:
    """Tests for InMemoryNotificationStore."""

    def test_create_one_assigns_id(self, notification_store: InMemoryNotificationStore) -> None:
        created = notification_store.create_one(notification())

        assert created.notification_id
        assert created.created_at is not None
        assert notification_store.summary() == {"notifications": 1, "recipients": 1}

    def test_create_one_copies(self, notification_store: InMemoryNotificationStore) -> None:
        original = notification()
        notification_store.create_one(original)

        assert original.notification_id is None

    def test_list_newest_first(self, notification_store: InMemoryNotificationStore) -> None:
        base = datetime(2024, 1, 15)
        for offset in (0, 2, 1):
            notification_store.create_one(notification(created_at=base + timedelta(hours=offset)))

        listed = notification_store.list("owner")
        assert [n.created_at.hour for n in listed] == [2, 1, 0]
        assert notification_store.list("nobody") == []

    def test_batch_mixed_operations(self, notification_store: InMemoryNotificationStore) -> None:
        keep = notification_store.create_one(notification())
        drop = notification_store.create_one(notification())

        applied = notification_store.create_batch(
            [
                BatchOperation.create(notification(title="new")),
                BatchOperation.delete(drop.notification_id),
                BatchOperation.update(keep.notification_id, read=True),
            ]
        )

        assert applied == 3
        listed = notification_store.list("owner")
        assert len(listed) == 2
        assert notification_store.notifications[keep.notification_id].read is True
        assert drop.notification_id not in notification_store.notifications

    def test_batch_validated_before_apply(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        with pytest.raises(StoreError):
            notification_store.create_batch(
                [
                    BatchOperation.create(notification()),
                    BatchOperation.update("missing", read=True),
                ]
            )

        assert notification_store.list("owner") == []

    def test_batch_with_existing_id_writes_nothing(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        """A create that collides with a stored id rejects the whole batch."""
        notification_store.create_one(notification(notification_id="dup"))

        with pytest.raises(StoreError, match="already exists"):
            notification_store.create_batch(
                [
                    BatchOperation.create(notification(title="new")),
                    BatchOperation.create(notification(notification_id="dup")),
                ]
            )

        assert len(notification_store.list("owner")) == 1

    def test_batch_with_repeated_id_writes_nothing(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        with pytest.raises(StoreError, match="already exists"):
            notification_store.create_batch(
                [
                    BatchOperation.create(notification(notification_id="n-1")),
                    BatchOperation.create(notification(notification_id="n-1")),
                ]
            )

        assert notification_store.list("owner") == []

    def test_batch_delete_then_create_same_id(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        notification_store.create_one(notification(notification_id="n-1", title="old"))

        notification_store.create_batch(
            [
                BatchOperation.delete("n-1"),
                BatchOperation.create(notification(notification_id="n-1", title="new")),
            ]
        )

        assert [n.title for n in notification_store.list("owner")] == ["new"]

    def test_batch_update_of_deleted_id_writes_nothing(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        created = notification_store.create_one(notification())

        with pytest.raises(StoreError, match="not found"):
            notification_store.create_batch(
                [
                    BatchOperation.delete(created.notification_id),
                    BatchOperation.update(created.notification_id, read=True),
                ]
            )

        assert len(notification_store.list("owner")) == 1

    def test_batch_rejects_unknown_update_field(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        created = notification_store.create_one(notification())

        with pytest.raises(StoreError, match="Cannot update"):
            notification_store.create_batch(
                [BatchOperation.update(created.notification_id, recipient_id="other")]
            )

        assert notification_store.list("owner")[0].recipient_id == "owner"

    def test_list_returns_copies(self, notification_store: InMemoryNotificationStore) -> None:
        """Changing a listed notification does not change the stored one."""
        notification_store.create_one(notification())

        listed = notification_store.list("owner")[0]
        listed.read = True
        listed.title = "edited"

        stored = notification_store.list("owner")[0]
        assert stored.read is False
        assert stored.title == "EMI Payment Due Today"
        assert notification_store.unread_count("owner") == 1

    def test_unknown_operation(self, notification_store: InMemoryNotificationStore) -> None:
        with pytest.raises(StoreError, match="Unknown batch operation"):
            notification_store.create_batch([BatchOperation(kind="upsert")])

    def test_mark_as_read(self, notification_store: InMemoryNotificationStore) -> None:
        created = notification_store.create_one(notification())
        notification_store.mark_as_read(created.notification_id)

        assert notification_store.unread_count("owner") == 0
        with pytest.raises(StoreError):
            notification_store.mark_as_read("missing")

    def test_delete_old_notifications(
        self, notification_store: InMemoryNotificationStore
    ) -> None:
        now = datetime(2024, 3, 1)
        notification_store.create_one(notification(read=True, created_at=now - timedelta(days=31)))
        notification_store.create_one(notification(read=True, created_at=now - timedelta(days=29)))
        notification_store.create_one(notification(read=False, created_at=now - timedelta(days=60)))

        assert notification_store.delete_old_notifications("owner", 30, now) == 1
        assert len(notification_store.list("owner")) == 2
