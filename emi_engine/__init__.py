"""EMI installment schedules, payment application and due-date notifications."""

from emi_engine.config import EngineConfig
from emi_engine.engine import (
    EmiService,
    NotificationDeriver,
    apply_payment,
    build_emi_details,
    change_due_date,
    classify,
    generate_schedule,
    summarize,
)

__version__ = "0.1.0"

__all__ = [
    "EmiService",
    "EngineConfig",
    "NotificationDeriver",
    "apply_payment",
    "build_emi_details",
    "change_due_date",
    "classify",
    "generate_schedule",
    "summarize",
]
