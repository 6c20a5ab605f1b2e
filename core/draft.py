"""
Invoice draft: the item list being assembled before it is committed.

A draft snapshots each product when its line is added, computes the line
amount once, and keeps the cash amount in step with the total:

- Not editing: every change to the item list resets cash to the new total,
  so a manual cash amount only survives until the next item change.
- Editing a committed invoice: cash is left as entered, existing lines keep
  their frozen amounts, and the stock check on new lines is skipped.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from core import billing, validation
from core.models import Invoice, InvoiceItem, InvoicePreview, InvoicePreviewLine, Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DraftLine:
    """A line on a draft. item_id is set when carried over from a stored invoice."""

    product_id: UUID
    code: str
    description: str
    unit_price: Decimal
    quantity: int
    discount: Decimal
    amount: Decimal
    item_id: UUID | None = None


class InvoiceDraft:
    """Client-side state of one invoice between "add item" and "submit"."""

    def __init__(self, edit_mode: bool = False, cash_amount: Decimal = Decimal("0")):
        self.edit_mode = edit_mode
        self._lines: list[DraftLine] = []
        self._cash_amount = billing.to_money(cash_amount)

    @classmethod
    def for_invoice(cls, invoice: Invoice) -> "InvoiceDraft":
        """Open a committed invoice for editing."""
        draft = cls(edit_mode=True, cash_amount=invoice.cash_amount)
        for item in invoice.items:
            draft.keep_item(item)
        return draft

    @property
    def lines(self) -> tuple[DraftLine, ...]:
        return tuple(self._lines)

    @property
    def total_amount(self) -> Decimal:
        return billing.invoice_total(line.amount for line in self._lines)

    @property
    def cash_amount(self) -> Decimal:
        return self._cash_amount

    @property
    def balance_amount(self) -> Decimal:
        return billing.balance(self._cash_amount, self.total_amount)

    def add_item(self, product: Product | None, quantity: int, discount: Decimal = Decimal("0")) -> DraftLine:
        """
        Validate and append a new line priced at the product's current price.

        Raises:
            PosValidationError: On any failed rule. The draft is unchanged.
        """
        product = validation.require_product(product)
        validation.check_quantity(quantity)
        validation.check_stock(product, quantity, self.edit_mode)

        discount = billing.to_money(discount)
        subtotal = billing.line_subtotal(product.price, quantity)
        validation.check_amount(subtotal)
        validation.check_discount(discount, subtotal)

        line = DraftLine(
            product_id=product.id,
            code=product.code,
            description=product.description,
            unit_price=product.price,
            quantity=quantity,
            discount=discount,
            amount=billing.line_amount(product.price, quantity, discount),
        )
        self._lines.append(line)
        self._items_changed()
        return line

    def keep_item(self, item: InvoiceItem) -> DraftLine:
        """Carry a stored line over unchanged, frozen amount included."""
        line = DraftLine(
            product_id=item.product_id,
            code=item.product.code if item.product else "",
            description=item.product.description if item.product else "",
            unit_price=item.unit_price,
            quantity=item.quantity,
            discount=item.discount,
            amount=item.amount,
            item_id=item.id,
        )
        self._lines.append(line)
        self._items_changed()
        return line

    def remove_item(self, index: int) -> DraftLine:
        if not 0 <= index < len(self._lines):
            raise ValueError(f"No item at position {index}")
        line = self._lines.pop(index)
        self._items_changed()
        return line

    def set_cash_amount(self, amount: Decimal) -> None:
        self._cash_amount = billing.to_money(amount)

    def validate_submission(self) -> None:
        """
        Raises:
            EmptyInvoiceError: No items.
            InsufficientCashError: Cash below total.
        """
        validation.check_submission(len(self._lines), self._cash_amount, self.total_amount)

    def preview(self) -> InvoicePreview:
        return InvoicePreview(
            lines=[
                InvoicePreviewLine(
                    product_id=line.product_id,
                    code=line.code,
                    description=line.description,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    discount=line.discount,
                    amount=line.amount,
                )
                for line in self._lines
            ],
            total_amount=self.total_amount,
            cash_amount=self.cash_amount,
            balance_amount=self.balance_amount,
        )

    def _items_changed(self) -> None:
        if self._lines and not self.edit_mode:
            self._cash_amount = self.total_amount
            logger.debug(f"Cash amount reset to total {self._cash_amount}")
