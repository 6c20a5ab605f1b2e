"""
Validation rules for invoice entry and submission.

Each check raises a PosValidationError subclass and never touches the
database. Product form rules (required code/description, positive price)
live on the pydantic models in core.models.product.
"""

from decimal import Decimal
from typing import Mapping
from uuid import UUID

from core import billing
from core.exceptions import (
    AmountTooLargeError,
    EmptyInvoiceError,
    InsufficientCashError,
    InsufficientStockError,
    InvalidDiscountError,
    InvalidQuantityError,
    ProductNotSelectedError,
)
from core.models import Product


def require_product(product: Product | None) -> Product:
    """An item needs a selected product."""
    if product is None:
        raise ProductNotSelectedError()
    return product


def check_quantity(quantity: int) -> None:
    if quantity <= 0:
        raise InvalidQuantityError(quantity)


def check_stock(product: Product, quantity: int, edit_mode: bool) -> None:
    """
    Quantity may not exceed the product's stock.

    Skipped entirely while editing a committed invoice: edits are allowed to
    oversell.
    """
    if edit_mode:
        return
    if quantity > product.stock:
        raise InsufficientStockError(product.code, product.stock, quantity)


def check_discount(discount: Decimal, subtotal: Decimal) -> None:
    """Discount is a flat amount between zero and the line subtotal."""
    if discount < 0 or discount > subtotal:
        raise InvalidDiscountError(discount, subtotal)


def check_amount(amount: Decimal) -> None:
    if amount > billing.MAX_AMOUNT:
        raise AmountTooLargeError(amount, billing.MAX_AMOUNT)


def check_submission(item_count: int, cash_amount: Decimal, total_amount: Decimal) -> None:
    """Gate before any store call: at least one item, and enough cash."""
    if item_count == 0:
        raise EmptyInvoiceError()
    check_amount(total_amount)
    if cash_amount < total_amount:
        raise InsufficientCashError(cash_amount, total_amount)


def check_stock_available(
    products: Mapping[UUID, Product],
    required: Mapping[UUID, int],
) -> None:
    """
    Commit-time check of summed quantities against freshly read stock.

    required maps product id to the total quantity the invoice takes,
    across every line for that product.
    """
    for product_id, quantity in required.items():
        product = products[product_id]
        if quantity > product.stock:
            raise InsufficientStockError(product.code, product.stock, quantity)
