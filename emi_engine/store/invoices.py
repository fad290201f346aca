"""Invoice data store with per-business-unit namespaces."""

import copy
from dataclasses import dataclass, field
from datetime import datetime

from emi_engine.exceptions import ConcurrencyError, InvalidStateError, InvoiceNotFoundError
from emi_engine.models.enums import DeliveryStatus, PaymentStatus
from emi_engine.models.invoice import Invoice

InvoiceKey = tuple[str, str]  # (business_unit, invoice_id)


@dataclass
class InvoiceStore:
    """In-memory invoice store with optimistic concurrency.

    Invoices are copied on the way in and out, so callers never share state
    with the store. Every successful write bumps ``Invoice.version``; a
    write carrying a stale version is rejected.
    """

    invoices: dict[InvoiceKey, Invoice] = field(default_factory=dict)

    # Relationship indexes
    _customer_invoices: dict[InvoiceKey, list[str]] = field(default_factory=dict)

    def add(self, invoice: Invoice) -> Invoice:
        """Add a new invoice and return the stored copy (version 1)."""
        key = (invoice.business_unit, invoice.invoice_id)
        if key in self.invoices:
            raise InvalidStateError(f"Invoice {invoice.invoice_id} already exists")

        stored = copy.deepcopy(invoice)
        stored.version = 1
        if stored.created_at is None:
            stored.created_at = datetime.now()
        stored.updated_at = stored.created_at
        self.invoices[key] = stored
        self._customer_invoices.setdefault(
            (invoice.business_unit, invoice.customer_id), []
        ).append(invoice.invoice_id)
        return copy.deepcopy(stored)

    def get(self, business_unit: str, invoice_id: str) -> Invoice:
        """Return a copy of an invoice.

        Raises
        ------
        InvoiceNotFoundError
            If the business unit has no such invoice.
        """
        stored = self.invoices.get((business_unit, invoice_id))
        if stored is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found in {business_unit}")
        return copy.deepcopy(stored)

    def save(self, invoice: Invoice, expected_version: int) -> Invoice:
        """Replace an invoice if its stored version is ``expected_version``.

        Raises
        ------
        InvoiceNotFoundError
            If the invoice was never added.
        ConcurrencyError
            If another write happened since ``expected_version`` was read.
        """
        key = (invoice.business_unit, invoice.invoice_id)
        current = self.invoices.get(key)
        if current is None:
            raise InvoiceNotFoundError(
                f"Invoice {invoice.invoice_id} not found in {invoice.business_unit}"
            )
        if current.version != expected_version:
            raise ConcurrencyError(
                f"Invoice {invoice.invoice_id} is at version {current.version}, "
                f"expected {expected_version}"
            )

        stored = copy.deepcopy(invoice)
        stored.version = current.version + 1
        stored.created_at = current.created_at
        stored.updated_at = datetime.now()
        self.invoices[key] = stored
        return copy.deepcopy(stored)

    def query(
        self,
        business_unit: str,
        payment_status: PaymentStatus | None = None,
        delivery_status: DeliveryStatus | None = None,
    ) -> list[Invoice]:
        """Return copies of a business unit's invoices matching the filters."""
        return [
            copy.deepcopy(invoice)
            for (unit, _), invoice in self.invoices.items()
            if unit == business_unit
            and (payment_status is None or invoice.payment_status == payment_status)
            and (delivery_status is None or invoice.delivery_status == delivery_status)
        ]

    def get_customer_invoices(self, business_unit: str, customer_id: str) -> list[Invoice]:
        """Get all invoices of a customer."""
        invoice_ids = self._customer_invoices.get((business_unit, customer_id), [])
        return [self.get(business_unit, invoice_id) for invoice_id in invoice_ids]

    def summary(self) -> dict[str, int]:
        """Return summary counts."""
        return {
            "invoices": len(self.invoices),
            "emi_invoices": sum(1 for i in self.invoices.values() if i.is_emi),
            "business_units": len({unit for unit, _ in self.invoices}),
        }
