"""
Invoice arithmetic.

Pure functions over Decimal money values. Every result is quantized to two
places so stored amounts, totals and balances always compare exactly.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")

# Largest value a NUMERIC(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(value: Decimal | int | str) -> Decimal:
    """Normalize a money value to two decimal places."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    """Price times quantity, before discount."""
    return to_money(unit_price * quantity)


def line_amount(unit_price: Decimal, quantity: int, discount: Decimal) -> Decimal:
    """
    Amount charged for one line: unit_price * quantity - discount.

    The discount is a flat amount, not a percentage. Range checks on the
    discount belong to core.validation; this function only does arithmetic.
    """
    return to_money(line_subtotal(unit_price, quantity) - discount)


def invoice_total(amounts: Iterable[Decimal]) -> Decimal:
    """Sum of line amounts. An empty invoice totals 0.00."""
    return to_money(sum(amounts, Decimal("0")))


def balance(cash_amount: Decimal, total_amount: Decimal) -> Decimal:
    """Change owed to the customer: cash tendered minus total."""
    return to_money(cash_amount - total_amount)
