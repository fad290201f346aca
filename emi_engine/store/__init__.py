"""In-memory stores for invoices and generated notifications."""

from emi_engine.store.invoices import InvoiceStore
from emi_engine.store.notifications import (
    BatchOperation,
    InMemoryNotificationStore,
    NotificationStore,
)

__all__ = [
    "BatchOperation",
    "InMemoryNotificationStore",
    "InvoiceStore",
    "NotificationStore",
]
