"""EMI schedule generation and plan totals.

A schedule is generated once, when the invoice is created, from
``(monthly_amount, start_date, duration)``. Due dates fall on the same day of
month as the start date; months without that day clamp to their last day
(``2024-01-31`` is followed by ``2024-02-29``, then ``2024-03-31``).

Interest is informational only: the per-period split into interest and
principal portions is reported but never changes the scheduled amount.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta

from emi_engine.exceptions import ValidationError
from emi_engine.models.emi import EmiDetails, Installment
from emi_engine.money import ZERO, money, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass
class EmiTotals:
    """Reporting totals for a plan, recomputed on demand."""

    total_emi_amount: Decimal
    total_interest: Decimal
    effective_interest_rate: Decimal
    processing_fee: Decimal
    grand_total: Decimal
    down_payment: Decimal = ZERO

    @property
    def undercharged(self) -> bool:
        """The plan collects less than the invoice total."""
        return self.total_interest < ZERO


def due_date_for(start_date: date, installment_number: int) -> date:
    """Return the due date of installment ``installment_number`` (1-based)."""
    return start_date + relativedelta(months=installment_number - 1)


def _check_duration(duration: int | None) -> None:
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise ValidationError(f"duration must be >= 1, got {duration!r}", field="duration")


def _rate(interest_rate: Decimal | None) -> Decimal:
    rate = to_decimal(ZERO if interest_rate is None else interest_rate, field="interest_rate")
    if rate < 0:
        raise ValidationError(
            f"interest_rate must be >= 0, got {interest_rate}", field="interest_rate"
        )
    return rate


def _validate(
    monthly_amount: Decimal | None,
    start_date: date | None,
    duration: int | None,
    interest_rate: Decimal,
) -> None:
    _check_duration(duration)
    if monthly_amount is None or money(monthly_amount, field="monthly_amount") <= ZERO:
        raise ValidationError(
            f"monthly_amount must be > 0, got {monthly_amount}", field="monthly_amount"
        )
    if start_date is None:
        raise ValidationError("start_date is required", field="start_date")
    _rate(interest_rate)


def build_installment(
    installment_number: int, due_date: date, amount: Decimal, interest_rate: Decimal = ZERO
) -> Installment:
    """Return an unpaid installment with its informational interest split."""
    rate = _rate(interest_rate)
    interest = money(amount * rate / HUNDRED) if rate > 0 else ZERO
    return Installment(
        installment_number=installment_number,
        due_date=due_date,
        amount=amount,
        interest_portion=interest,
        principal_portion=amount - interest,
    )


def generate_schedule(
    monthly_amount: Decimal,
    start_date: date,
    duration: int,
    interest_rate: Decimal = ZERO,
) -> list[Installment]:
    """Generate the initial installment schedule.

    Parameters
    ----------
    monthly_amount : Decimal
        Nominal per-period installment, > 0.
    start_date : date
        Due date of the first installment.
    duration : int
        Number of installments, >= 1.
    interest_rate : Decimal
        Percent per period, used for the informational interest portion.

    Returns
    -------
    list[Installment]
        ``duration`` unpaid installments numbered 1..duration.

    Raises
    ------
    ValidationError
        If an input is missing, malformed or out of range; ``field`` names it.
    """
    _validate(monthly_amount, start_date, duration, interest_rate)

    amount = money(monthly_amount)
    return [
        build_installment(number, due_date_for(start_date, number), amount, interest_rate)
        for number in range(1, duration + 1)
    ]


def build_emi_details(
    monthly_amount: Decimal,
    start_date: date,
    duration: int,
    interest_rate: Decimal = ZERO,
    processing_fee: Decimal = ZERO,
    down_payment: Decimal = ZERO,
) -> EmiDetails:
    """Validate plan inputs and return ``EmiDetails`` with a fresh schedule.

    ``down_payment`` is collected up front and sits outside the schedule.
    """
    for name, value in (("processing_fee", processing_fee), ("down_payment", down_payment)):
        if money(value, field=name) < ZERO:
            raise ValidationError(f"{name} must be >= 0, got {value}", field=name)

    schedule = generate_schedule(monthly_amount, start_date, duration, interest_rate)
    return EmiDetails(
        monthly_amount=money(monthly_amount),
        start_date=start_date,
        duration=duration,
        interest_rate=_rate(interest_rate),
        processing_fee=money(processing_fee),
        schedule=schedule,
        down_payment=money(down_payment),
    )


def compute_totals(emi: EmiDetails, invoice_total: Decimal) -> EmiTotals:
    """Compute reporting totals for a plan against its invoice total.

    The plan collects its down payment plus every scheduled installment.
    A negative ``total_interest`` means the plan undercharges; that is
    logged as a warning, not rejected.
    """
    invoice_total = money(invoice_total, field="invoice_total")
    down_payment = money(emi.down_payment)
    total_emi = money(emi.total_scheduled)
    total_interest = down_payment + total_emi - invoice_total

    if invoice_total > ZERO:
        effective = (total_interest / invoice_total * HUNDRED).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
    else:
        effective = ZERO

    totals = EmiTotals(
        total_emi_amount=total_emi,
        total_interest=total_interest,
        effective_interest_rate=effective,
        processing_fee=money(emi.processing_fee),
        grand_total=down_payment + total_emi + money(emi.processing_fee),
        down_payment=down_payment,
    )
    if totals.undercharged:
        logger.warning(
            "EMI plan undercharges invoice total %s by %s", invoice_total, -total_interest
        )
    return totals


def suggest_monthly_amount(
    invoice_total: Decimal,
    duration: int,
    interest_rate: Decimal = ZERO,
    down_payment: Decimal = ZERO,
) -> Decimal:
    """Suggest a whole-unit monthly amount covering the financed amount.

    The financed amount is ``invoice_total - down_payment``. The base is
    ``ceil(financed / duration)``; per-period interest on that base is added
    and the result rounded to whole currency units.
    """
    _check_duration(duration)
    invoice_total = money(invoice_total, field="invoice_total")
    if invoice_total <= ZERO:
        raise ValidationError(
            f"invoice_total must be > 0, got {invoice_total}", field="invoice_total"
        )
    financed = invoice_total - money(down_payment, field="down_payment")
    if financed <= ZERO or financed > invoice_total:
        raise ValidationError(
            f"down_payment must be between 0 and {invoice_total}, got {down_payment}",
            field="down_payment",
        )

    base = (financed / duration).to_integral_value(rounding=ROUND_CEILING)
    rate = _rate(interest_rate)
    monthly = base + (base * rate / HUNDRED if rate > 0 else 0)
    return money(monthly.to_integral_value(rounding=ROUND_HALF_UP))
