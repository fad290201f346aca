"""Pytest configuration and fixtures."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable

import pytest

from emi_engine.engine.schedule import build_emi_details
from emi_engine.models import EmiDetails, Invoice, PaymentStatus
from emi_engine.store import InMemoryNotificationStore, InvoiceStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def today() -> date:
    """Reference date used across tests."""
    return date(2024, 1, 15)


@pytest.fixture
def now() -> datetime:
    """Reference clock reading on ``today``."""
    return datetime(2024, 1, 15, 10, 0)


@pytest.fixture
def sample_emi() -> EmiDetails:
    """Three installments of 1000 starting 2024-01-15."""
    return build_emi_details(Decimal("1000"), date(2024, 1, 15), 3)


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Factory for EMI invoices with sensible defaults."""

    def factory(
        invoice_id: str = "inv-001",
        monthly_amount: str = "1000",
        start_date: date = date(2024, 1, 15),
        duration: int = 3,
        **overrides,
    ) -> Invoice:
        fields = {
            "invoice_id": invoice_id,
            "invoice_number": f"INV-{invoice_id}",
            "customer_id": "cust-001",
            "customer_name": "Asha Verma",
            "total_amount": Decimal(monthly_amount) * duration,
            "payment_status": PaymentStatus.EMI,
            "emi_details": build_emi_details(Decimal(monthly_amount), start_date, duration),
            "customer_phone": "+91 98765 43210",
        }
        fields.update(overrides)
        return Invoice(**fields)

    return factory


@pytest.fixture
def invoice_store() -> InvoiceStore:
    """Create a fresh invoice store for each test."""
    return InvoiceStore()


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    """Create a fresh notification store for each test."""
    return InMemoryNotificationStore()
