"""Due-date urgency classification.

Urgency is never persisted; it is a pure function of ``(due_date, today)``.
Callers read the clock once per logical operation and pass the same
``today`` for every installment so a run cannot flap between "due today"
and "overdue" across midnight.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time

from emi_engine.models.emi import EmiDetails, Installment
from emi_engine.models.enums import Severity, Urgency

SOON_DAYS = 3
DUE_WINDOW_DAYS = 7
UPCOMING_WINDOW_DAYS = 30

_SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class UrgencyLevel:
    """Classification of one due date relative to today."""

    urgency: Urgency
    severity: Severity | None
    days_diff: int

    @property
    def actionable(self) -> bool:
        return self.urgency != Urgency.NONE

    @property
    def in_due_window(self) -> bool:
        """Overdue or due within 7 days: one notification per installment."""
        return self.actionable and self.days_diff <= DUE_WINDOW_DAYS

    @property
    def in_upcoming_window(self) -> bool:
        """Due in 8-30 days: at most one notification per invoice."""
        return self.actionable and self.days_diff > DUE_WINDOW_DAYS


def days_until(due_date: date, today: date | datetime) -> int:
    """Whole days from ``today`` to ``due_date``, rounded up.

    With a ``datetime`` the due date is taken at midnight, so a due date of
    today is 0 all day and yesterday's is -1.
    """
    if isinstance(today, datetime):
        due_at = datetime.combine(due_date, time.min, tzinfo=today.tzinfo)
        return math.ceil((due_at - today).total_seconds() / _SECONDS_PER_DAY)
    return (due_date - today).days


def classify_days(days_diff: int) -> UrgencyLevel:
    """Classify an unpaid due date ``days_diff`` days away."""
    if days_diff < 0:
        return UrgencyLevel(Urgency.OVERDUE, Severity.HIGH, days_diff)
    if days_diff == 0:
        return UrgencyLevel(Urgency.TODAY, Severity.HIGH, days_diff)
    if days_diff <= SOON_DAYS:
        return UrgencyLevel(Urgency.SOON, Severity.MEDIUM, days_diff)
    if days_diff <= DUE_WINDOW_DAYS:
        return UrgencyLevel(Urgency.UPCOMING, Severity.MEDIUM, days_diff)
    if days_diff <= UPCOMING_WINDOW_DAYS:
        return UrgencyLevel(Urgency.UPCOMING, Severity.LOW, days_diff)
    return UrgencyLevel(Urgency.NONE, None, days_diff)


def classify(installment: Installment, today: date | datetime) -> UrgencyLevel:
    """Classify an installment; settled installments are never actionable."""
    days_diff = days_until(installment.due_date, today)
    if installment.is_settled:
        return UrgencyLevel(Urgency.NONE, None, days_diff)
    return classify_days(days_diff)


def pending_installments(
    emi: EmiDetails, today: date | datetime
) -> list[tuple[Installment, UrgencyLevel]]:
    """Unsettled installments in due-date order with their classification."""
    pending = [i for i in emi.schedule if not i.is_settled]
    pending.sort(key=lambda i: (i.due_date, i.installment_number))
    return [(i, classify(i, today)) for i in pending]
