"""Invoice domain models.

Money is Decimal with two places. An item's amount is frozen when the line is
added: later edits to the product's price never change stored amounts.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from core.models.product import Product
from utils.timezone import to_utc

MAX_QUANTITY = 1_000_000


class InvoiceLineInput(BaseModel):
    """
    One requested line on an invoice submission.

    Either a new line (product_id, quantity, discount), priced at the
    product's current price, or - when editing - item_id of an existing line,
    which is carried over unchanged with its frozen amount.
    """

    item_id: UUID | None = None
    product_id: UUID | None = None
    quantity: int = Field(1, le=MAX_QUANTITY)
    discount: Decimal = Field(Decimal("0"), max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def exactly_one_source(self) -> "InvoiceLineInput":
        """A line is either a kept item or a new product line."""
        if (self.item_id is None) == (self.product_id is None):
            raise ValueError("Exactly one of item_id or product_id must be provided")
        return self


class InvoiceCreate(BaseModel):
    """Data required to commit a new invoice."""

    invoice_number: str = Field(..., min_length=1, max_length=50)
    customer_name: str | None = Field(None, max_length=255)
    items: list[InvoiceLineInput] = Field(default_factory=list)
    cash_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    date: datetime | None = None

    @field_validator("date")
    @classmethod
    def date_in_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value) if value is not None else None

    @field_validator("customer_name")
    @classmethod
    def blank_name_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def no_existing_items(self) -> "InvoiceCreate":
        if any(line.item_id is not None for line in self.items):
            raise ValueError("A new invoice cannot keep items from another invoice")
        return self


class InvoiceUpdate(BaseModel):
    """
    Replacement data for a committed invoice.

    items is the full new item list. None on a scalar field means keep the
    stored value; an empty customer_name clears it.
    """

    invoice_number: str | None = Field(None, min_length=1, max_length=50)
    customer_name: str | None = Field(None, max_length=255)
    items: list[InvoiceLineInput] = Field(default_factory=list)
    cash_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)


class InvoiceItem(BaseModel):
    """A stored invoice line, joined with the product's current row on read."""

    id: UUID
    invoice_id: UUID
    product_id: UUID
    position: int
    quantity: int
    unit_price: Decimal
    discount: Decimal
    amount: Decimal
    product: Product | None = None

    model_config = {"from_attributes": True}


class Invoice(BaseModel):
    """Full invoice entity as stored, with its items in insertion order."""

    id: UUID
    invoice_number: str
    date: datetime
    customer_name: str | None
    total_amount: Decimal
    cash_amount: Decimal
    balance_amount: Decimal
    updated_at: datetime
    items: list[InvoiceItem] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_derived_amounts(self) -> "Invoice":
        """Stored totals must agree with the lines they were derived from."""
        if self.balance_amount != self.cash_amount - self.total_amount:
            raise ValueError(
                f"Invoice {self.invoice_number}: balance {self.balance_amount} "
                f"!= cash {self.cash_amount} - total {self.total_amount}"
            )
        if self.items:
            items_total = sum((item.amount for item in self.items), Decimal("0"))
            if items_total != self.total_amount:
                raise ValueError(
                    f"Invoice {self.invoice_number}: total {self.total_amount} "
                    f"!= sum of item amounts {items_total}"
                )
        return self

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class InvoicePreviewLine(BaseModel):
    """A computed line that has not been written anywhere."""

    product_id: UUID
    code: str
    description: str
    unit_price: Decimal
    quantity: int
    discount: Decimal
    amount: Decimal


class InvoicePreview(BaseModel):
    """Totals for a draft invoice, computed without touching stock."""

    lines: list[InvoicePreviewLine]
    total_amount: Decimal
    cash_amount: Decimal
    balance_amount: Decimal
