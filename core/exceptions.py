"""Typed exceptions for point-of-sale failures.

Validation errors subclass ValueError so callers that only know the generic
"bad input" contract still handle them. All of them are raised before any
write reaches the database.
"""

from decimal import Decimal


class PosError(Exception):
    """Base class for point-of-sale domain errors."""


class PosValidationError(PosError, ValueError):
    """User input failed a precondition. Nothing was written."""


class ProductNotSelectedError(PosValidationError):
    """An item was added without choosing a product."""

    def __init__(self):
        super().__init__("Please select a product")


class InvalidQuantityError(PosValidationError):
    """Item quantity is zero or negative."""

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__("Quantity must be greater than zero")


class InsufficientStockError(PosValidationError):
    """Requested quantity is larger than the product's stock."""

    def __init__(self, product_code: str, available: int, required: int):
        self.product_code = product_code
        self.available = available
        self.required = required
        super().__init__(
            f"Quantity exceeds available stock for '{product_code}': "
            f"{available} available, {required} requested"
        )


class InvalidDiscountError(PosValidationError):
    """Discount is negative or larger than the line subtotal."""

    def __init__(self, discount: Decimal, subtotal: Decimal):
        self.discount = discount
        self.subtotal = subtotal
        super().__init__(
            f"Discount {discount:.2f} must be between 0.00 and the line subtotal {subtotal:.2f}"
        )


class AmountTooLargeError(PosValidationError):
    """A line amount or invoice total is beyond what can be stored."""

    def __init__(self, amount: Decimal, limit: Decimal):
        self.amount = amount
        self.limit = limit
        super().__init__(f"Amount {amount:.2f} exceeds the maximum of {limit:.2f}")


class EmptyInvoiceError(PosValidationError):
    """Submission with no items."""

    def __init__(self):
        super().__init__("Add at least one item to the invoice")


class InsufficientCashError(PosValidationError):
    """Cash tendered is below the invoice total."""

    def __init__(self, cash_amount: Decimal, total_amount: Decimal):
        self.cash_amount = cash_amount
        self.total_amount = total_amount
        super().__init__(f"Cash amount must be at least {total_amount:.2f}")


class ProductInUseError(PosError):
    """Product is referenced by committed invoices and cannot be deleted."""

    def __init__(self, product_code: str):
        self.product_code = product_code
        super().__init__(
            f"Product '{product_code}' appears on existing invoices and cannot be deleted"
        )
