"""EMI schedule, payment, urgency and notification logic."""

from emi_engine.engine.notifications import GenerationResult, NotificationDeriver
from emi_engine.engine.payments import PaymentImpact, PaymentOutcome, apply_payment
from emi_engine.engine.rescheduling import (
    change_due_date,
    change_monthly_amount,
    due_date_change_flags,
    has_frequent_due_date_changes,
)
from emi_engine.engine.schedule import (
    EmiTotals,
    build_emi_details,
    compute_totals,
    generate_schedule,
    suggest_monthly_amount,
)
from emi_engine.engine.service import EmiService
from emi_engine.engine.summary import EmiSummary, summarize
from emi_engine.engine.urgency import UrgencyLevel, classify, days_until, pending_installments

__all__ = [
    "EmiService",
    "EmiSummary",
    "EmiTotals",
    "GenerationResult",
    "NotificationDeriver",
    "PaymentImpact",
    "PaymentOutcome",
    "UrgencyLevel",
    "apply_payment",
    "build_emi_details",
    "change_due_date",
    "change_monthly_amount",
    "classify",
    "compute_totals",
    "days_until",
    "due_date_change_flags",
    "generate_schedule",
    "has_frequent_due_date_changes",
    "pending_installments",
    "summarize",
    "suggest_monthly_amount",
]
