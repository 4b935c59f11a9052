"""Fixed-point money helpers.

Amounts are ``Decimal`` end to end. Sums are kept at full precision and only
quantized to cents (half-up) when a value is stored.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Convert user input to Decimal without binary-float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("boolean is not an amount")
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise TypeError(f"not an amount: {value!r}") from exc


def round_money(value) -> Decimal:
    amount = to_decimal(value)
    if not amount.is_finite():
        raise TypeError(f"not a finite amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
