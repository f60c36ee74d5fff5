"""
Decimal helpers.

Money is kept with 2 places, average cost with 4, quantities with 3.
Rounding is half-up.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal('0')
HUNDRED = Decimal('100')

_CENT = Decimal('0.01')
_COST = Decimal('0.0001')
_QTY = Decimal('0.001')


def as_decimal(value) -> Decimal:
    """Coerce int/float/str/None to Decimal (floats via str to avoid binary noise)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    return as_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def round_cost(value) -> Decimal:
    return as_decimal(value).quantize(_COST, rounding=ROUND_HALF_UP)


def round_qty(value) -> Decimal:
    return as_decimal(value).quantize(_QTY, rounding=ROUND_HALF_UP)
