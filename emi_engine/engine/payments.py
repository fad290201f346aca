"""Payment application and redistribution across an EMI schedule.

A payment is recorded against one installment and classified against the
amount still due on it:

- exact: the installment is settled.
- short: the payment is kept on the installment and the shortfall moves
  onto the later unsettled installments, split evenly (the cent remainder
  goes to the last one). The installment remembers the moved amount in
  ``carried_forward`` so scheduled money is conserved. With nothing left
  to carry onto, the shortfall stays due where it is and is reported.
- over: the installment is settled and the excess is applied in order to
  the later unsettled installments. Whatever is left after the last one is
  kept as ``unapplied_credit`` on the plan.

The input ``EmiDetails`` is never mutated; a new copy is returned only once
the whole schedule has been reconciled.
"""

from __future__ import annotations

import copy
import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from emi_engine.exceptions import (
    AlreadySettledError,
    NotFoundError,
    UnappliedCreditWarning,
    ValidationError,
)
from emi_engine.logging import log_context
from emi_engine.models.emi import EmiDetails, Installment, PaymentDetails, PaymentRecord
from emi_engine.money import ZERO, money, split_evenly

logger = logging.getLogger(__name__)

AUTO_ADJUST_NOTE = "Auto-adjusted from overpayment"


@dataclass
class PaymentImpact:
    """What a payment did to the schedule."""

    installment_number: int
    payment_amount: Decimal
    is_full_payment: bool = False
    is_partial_payment: bool = False
    is_overpayment: bool = False
    shortfall: Decimal = ZERO
    overpayment: Decimal = ZERO
    unapplied_credit: Decimal = ZERO
    shortfall_outstanding: bool = False  # no later installment to carry onto
    redistributed_to: list[int] = field(default_factory=list)
    settled_installments: list[int] = field(default_factory=list)


@dataclass
class PaymentOutcome:
    """New schedule state plus the impact summary."""

    emi_details: EmiDetails
    impact: PaymentImpact


def _find_payable(emi: EmiDetails, installment_number: int) -> Installment:
    installment = emi.get_installment(installment_number)
    if installment is None:
        raise NotFoundError(f"Installment {installment_number} not found")
    if installment.paid:
        raise AlreadySettledError(f"Installment {installment_number} is already paid")
    if installment.is_settled:
        raise AlreadySettledError(
            f"Installment {installment_number} has nothing outstanding; "
            f"{installment.carried_forward} was carried forward"
        )
    return installment


def _later_unsettled(emi: EmiDetails, installment_number: int) -> list[Installment]:
    later = [
        i
        for i in emi.schedule
        if i.installment_number > installment_number and not i.is_settled
    ]
    return sorted(later, key=lambda i: i.installment_number)


def _record(
    installment: Installment,
    amount: Decimal,
    details: PaymentDetails,
    paid_at: datetime,
    auto_adjusted: bool = False,
) -> None:
    installment.payment_history.append(
        PaymentRecord(
            amount=amount,
            paid_at=paid_at,
            method=details.method,
            cumulative_paid=installment.paid_amount,
            reference=None if auto_adjusted else details.reference,
            notes=AUTO_ADJUST_NOTE if auto_adjusted else details.notes,
            recorded_by=details.recorded_by,
            auto_adjusted=auto_adjusted,
        )
    )


def _settle(installment: Installment, paid_at: datetime) -> None:
    installment.paid = True
    installment.paid_amount = installment.amount
    installment.partially_paid = False
    installment.paid_at = paid_at


def _carry_shortfall(
    emi: EmiDetails, target: Installment, shortfall: Decimal, impact: PaymentImpact
) -> None:
    later = _later_unsettled(emi, target.installment_number)
    if not later:
        impact.shortfall_outstanding = True
        logger.warning(
            "Shortfall %s stays outstanding on final installment %d",
            shortfall,
            target.installment_number,
            extra=log_context(installment_number=target.installment_number),
        )
        return

    for installment, share in zip(later, split_evenly(shortfall, len(later))):
        installment.amount += share
        installment.principal_portion += share
        impact.redistributed_to.append(installment.installment_number)
    target.carried_forward += shortfall
    logger.info(
        "Carried shortfall %s from installment %d onto installments %s",
        shortfall,
        target.installment_number,
        impact.redistributed_to,
        extra=log_context(installment_number=target.installment_number, shortfall=shortfall),
    )


def _apply_excess(
    emi: EmiDetails,
    target: Installment,
    excess: Decimal,
    details: PaymentDetails,
    paid_at: datetime,
    impact: PaymentImpact,
) -> Decimal:
    remaining = excess
    for installment in _later_unsettled(emi, target.installment_number):
        if remaining <= ZERO:
            break
        applied = min(installment.outstanding, remaining)
        installment.paid_amount += applied
        remaining -= applied
        if installment.outstanding <= ZERO:
            _settle(installment, paid_at)
            impact.settled_installments.append(installment.installment_number)
        else:
            installment.partially_paid = True
        impact.redistributed_to.append(installment.installment_number)
        _record(installment, applied, details, paid_at, auto_adjusted=True)
    return remaining


def apply_payment(
    emi: EmiDetails,
    installment_number: int,
    payment_amount: Decimal,
    details: PaymentDetails | None = None,
) -> PaymentOutcome:
    """Apply a payment to one installment and reconcile the schedule.

    Parameters
    ----------
    emi : EmiDetails
        Current plan state. Not modified.
    installment_number : int
        Installment the payment was recorded against.
    payment_amount : Decimal
        Amount received, > 0.
    details : PaymentDetails | None
        Method, reference and timestamp, passed through to the history.

    Returns
    -------
    PaymentOutcome
        Reconciled copy of the plan and the payment impact.

    Raises
    ------
    ValidationError
        If ``payment_amount`` is not positive.
    NotFoundError
        If no installment has that number.
    AlreadySettledError
        If the installment is paid or has nothing outstanding.
    """
    amount = money(payment_amount, field="payment_amount")
    if payment_amount is None or amount <= ZERO:
        raise ValidationError(
            f"payment_amount must be > 0, got {payment_amount}", field="payment_amount"
        )
    _find_payable(emi, installment_number)

    details = details or PaymentDetails()
    paid_at = details.paid_at or datetime.now()

    updated = copy.deepcopy(emi)
    target = updated.get_installment(installment_number)
    due = target.outstanding
    impact = PaymentImpact(installment_number=installment_number, payment_amount=amount)

    if amount == due:
        impact.is_full_payment = True
        _settle(target, paid_at)
        impact.settled_installments.append(installment_number)
        _record(target, amount, details, paid_at)
    elif amount < due:
        impact.is_partial_payment = True
        impact.shortfall = due - amount
        target.paid_amount += amount
        target.partially_paid = True
        _record(target, amount, details, paid_at)
        _carry_shortfall(updated, target, impact.shortfall, impact)
    else:
        impact.is_overpayment = True
        impact.overpayment = amount - due
        _settle(target, paid_at)
        impact.settled_installments.append(installment_number)
        _record(target, amount, details, paid_at)
        leftover = _apply_excess(updated, target, impact.overpayment, details, paid_at, impact)
        if leftover > ZERO:
            impact.unapplied_credit = leftover
            updated.unapplied_credit += leftover
            logger.warning(
                "Payment on installment %d left %s unapplied after the final installment",
                installment_number,
                leftover,
                extra=log_context(installment_number=installment_number, unapplied_credit=leftover),
            )
            warnings.warn(
                f"{leftover} of the payment on installment {installment_number} "
                "could not be applied to any installment",
                UnappliedCreditWarning,
                stacklevel=2,
            )

    updated.last_payment_date = paid_at
    logger.info(
        "Applied payment %s to installment %d (full=%s partial=%s over=%s)",
        amount,
        installment_number,
        impact.is_full_payment,
        impact.is_partial_payment,
        impact.is_overpayment,
        extra=log_context(installment_number=installment_number, payment_amount=amount),
    )
    return PaymentOutcome(emi_details=updated, impact=impact)
