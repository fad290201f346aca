"""Sample data generators."""

from emi_engine.generators.base import BaseGenerator
from emi_engine.generators.invoice import InvoiceGenerator, PaymentBehavior

__all__ = ["BaseGenerator", "InvoiceGenerator", "PaymentBehavior"]
