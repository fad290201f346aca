"""Rescheduling of an existing plan.

Two operations move an EMI plan after it was created: ``change_due_date``
shifts one unpaid installment and records the move in its history, and
``change_monthly_amount`` re-plans the outstanding balance at a new
monthly amount. Both return an updated copy and leave the input alone.
"""

from __future__ import annotations

import copy
import logging
import math
from datetime import date, datetime
from decimal import Decimal

from emi_engine.config import PaymentConfig
from emi_engine.engine.schedule import build_installment, due_date_for
from emi_engine.exceptions import AlreadySettledError, NotFoundError, ValidationError
from emi_engine.logging import log_context
from emi_engine.models.emi import DueDateChange, DueDateChangeFlags, EmiDetails, Installment
from emi_engine.money import ZERO, money

logger = logging.getLogger(__name__)


def change_due_date(
    emi: EmiDetails,
    installment_number: int,
    new_due_date: date,
    *,
    changed_by: str | None = None,
    reason: str = "",
    notes: str = "",
    changed_at: datetime | None = None,
) -> EmiDetails:
    """Move an unpaid installment's due date and record the change.

    The new date must keep due dates non-decreasing in installment order,
    i.e. fall between the neighbouring installments' due dates.

    Returns
    -------
    EmiDetails
        Updated copy of the plan; ``emi`` is not modified.
    """
    if new_due_date is None:
        raise ValidationError("new_due_date is required", field="new_due_date")

    current = emi.get_installment(installment_number)
    if current is None:
        raise NotFoundError(f"Installment {installment_number} not found")
    if current.is_settled:
        raise AlreadySettledError(
            f"Cannot change due date of settled installment {installment_number}"
        )

    ordered = sorted(emi.schedule, key=lambda i: i.installment_number)
    index = next(n for n, i in enumerate(ordered) if i.installment_number == installment_number)
    previous = ordered[index - 1] if index > 0 else None
    following = ordered[index + 1] if index + 1 < len(ordered) else None
    if previous is not None and new_due_date < previous.due_date:
        raise ValidationError(
            f"Installment {installment_number} cannot fall due before installment "
            f"{previous.installment_number} ({previous.due_date.isoformat()})",
            field="new_due_date",
        )
    if following is not None and new_due_date > following.due_date:
        raise ValidationError(
            f"Installment {installment_number} cannot fall due after installment "
            f"{following.installment_number} ({following.due_date.isoformat()})",
            field="new_due_date",
        )

    updated = copy.deepcopy(emi)
    target = updated.get_installment(installment_number)
    target.due_date_history.append(
        DueDateChange(
            previous_due_date=target.due_date,
            new_due_date=new_due_date,
            changed_at=changed_at or datetime.now(),
            changed_by=changed_by,
            reason=reason,
            notes=notes,
        )
    )
    target.due_date = new_due_date
    logger.info(
        "Moved installment %d due date to %s (%d change(s))",
        installment_number,
        new_due_date.isoformat(),
        target.due_date_change_count,
        extra=log_context(installment_number=installment_number),
    )
    return updated


def change_monthly_amount(emi: EmiDetails, new_monthly_amount: Decimal) -> EmiDetails:
    """Re-plan the outstanding balance at a new monthly amount.

    Settled installments are kept as they are. An unsettled installment
    that already took a payment is closed, its shortfall moving into the
    re-planned balance. The remaining unpaid installments are replaced by
    ``ceil(outstanding / new_monthly_amount)`` installments of the new
    amount, the last one taking the remainder.

    Replaced installments reuse the numbers and due dates (with their
    change history) of the unpaid installments they replace, in order.
    Any extra installments continue monthly from the plan's start date.
    ``total_scheduled`` is unchanged.

    Parameters
    ----------
    emi : EmiDetails
        Plan to re-plan; not modified.
    new_monthly_amount : Decimal
        New per-period amount, > 0.

    Returns
    -------
    EmiDetails
        Updated copy with ``monthly_amount`` and ``duration`` refreshed.

    Raises
    ------
    ValidationError
        If ``new_monthly_amount`` is missing, malformed or not positive.
    AlreadySettledError
        If nothing is left to pay.
    """
    amount = money(new_monthly_amount, field="monthly_amount")
    if new_monthly_amount is None or amount <= ZERO:
        raise ValidationError(
            f"monthly_amount must be > 0, got {new_monthly_amount}", field="monthly_amount"
        )

    remaining = sum((i.outstanding for i in emi.schedule if not i.is_settled), ZERO)
    if remaining <= ZERO:
        raise AlreadySettledError("Plan has no outstanding balance to re-plan")

    updated = copy.deepcopy(emi)
    if amount == emi.monthly_amount:
        return updated

    kept: list[Installment] = []
    replaced: list[Installment] = []
    for installment in sorted(updated.schedule, key=lambda i: i.installment_number):
        if installment.is_settled:
            kept.append(installment)
        elif installment.paid_amount > ZERO:
            installment.carried_forward += installment.outstanding
            kept.append(installment)
        else:
            replaced.append(installment)

    count = math.ceil(remaining / amount)
    amounts = [amount] * (count - 1) + [remaining - amount * (count - 1)]

    next_number = max(i.installment_number for i in updated.schedule) + 1
    previous_due = max((i.due_date for i in kept), default=updated.start_date)
    rebuilt: list[Installment] = []
    for index, share in enumerate(amounts):
        if index < len(replaced):
            old = replaced[index]
            installment = build_installment(
                old.installment_number, old.due_date, share, updated.interest_rate
            )
            installment.due_date_history = old.due_date_history
        else:
            due = max(due_date_for(updated.start_date, next_number), previous_due)
            installment = build_installment(next_number, due, share, updated.interest_rate)
            next_number += 1
        previous_due = installment.due_date
        rebuilt.append(installment)

    updated.schedule = sorted(kept + rebuilt, key=lambda i: i.installment_number)
    updated.monthly_amount = amount
    updated.duration = len(updated.schedule)
    logger.info(
        "Re-planned %s outstanding at %s a month over %d installment(s)",
        remaining,
        amount,
        count,
        extra=log_context(monthly_amount=amount, installments=count),
    )
    return updated


def has_frequent_due_date_changes(
    installment: Installment, config: PaymentConfig | None = None
) -> bool:
    """Whether one installment has been rescheduled often enough to flag."""
    config = config or PaymentConfig()
    return installment.due_date_change_count >= config.frequent_due_date_changes


def due_date_change_flags(
    emi: EmiDetails, config: PaymentConfig | None = None
) -> DueDateChangeFlags:
    """Aggregate due-date changes across the whole plan."""
    config = config or PaymentConfig()
    changes = [c for i in emi.schedule for c in i.due_date_history]
    total = len(changes)
    return DueDateChangeFlags(
        total_changes=total,
        has_frequent_changes=total >= config.frequent_due_date_changes,
        flagged_for_review=total >= config.review_due_date_changes,
        last_change_date=max((c.changed_at for c in changes), default=None),
    )
