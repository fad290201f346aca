"""Decimal helpers for currency amounts."""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from emi_engine.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Decimal | int | float | str, field: str | None = None) -> Decimal:
    """Parse ``value`` as a finite Decimal.

    Floats go through ``str`` first so ``0.1`` stays ``0.1``.

    Raises
    ------
    ValidationError
        If ``value`` is not a number, or is NaN or infinite. ``field`` is
        carried onto the error.
    """
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(
            f"{field or 'amount'} must be a number, got {value!r}", field=field
        ) from None
    if not number.is_finite():
        raise ValidationError(
            f"{field or 'amount'} must be a finite number, got {value!r}", field=field
        )
    return number


def money(value: Decimal | int | float | str | None, field: str | None = None) -> Decimal:
    """Return ``value`` as a 2-place Decimal rounded half-up.

    ``None`` counts as zero. Anything else that is not a finite number
    raises ``ValidationError`` naming ``field``.
    """
    if value is None:
        return ZERO
    return to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)


def split_evenly(amount: Decimal, parts: int) -> list[Decimal]:
    """Split ``amount`` into ``parts`` cent-exact shares.

    Every share is rounded down to the cent and the remainder lands on the
    last share, so ``sum(result) == amount`` always holds.
    """
    if parts <= 0:
        raise ValueError("parts must be positive")
    amount = money(amount)
    share = (amount / parts).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * (parts - 1)
    shares.append(amount - share * (parts - 1))
    return shares


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    """Format an amount for notification text, e.g. ``₹1,000.00``."""
    return f"{symbol}{money(amount):,.2f}"
