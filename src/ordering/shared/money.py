"""Monetary rounding shared by pricing, carts and payments.

Amounts are stored as floats on the aggregates; every computed amount is
passed through ``to_money`` so totals never carry binary-float noise.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def to_money(value) -> float:
    """Round a numeric value to two decimal places, half away from zero."""
    return float(Decimal(str(value or 0)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def line_subtotal(quantity: int, unit_price: float) -> float:
    return to_money(Decimal(str(unit_price)) * quantity)


def sum_money(amounts) -> float:
    return to_money(sum((Decimal(str(a or 0)) for a in amounts), Decimal("0")))
