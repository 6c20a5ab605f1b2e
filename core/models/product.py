"""Product catalog domain models.

Prices are Decimal with two places; the database column is NUMERIC(12, 2).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

# products.stock is INTEGER; leave headroom for restores on invoice delete
MAX_STOCK = 1_000_000_000


def _strip_required(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Product code and description are required")
    return value


class ProductCreate(BaseModel):
    """Data required to create a product."""

    code: str = Field(..., max_length=50)
    description: str = Field(..., max_length=500)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    stock: int = Field(0, ge=0, le=MAX_STOCK)

    @field_validator("code", "description")
    @classmethod
    def require_text(cls, value: str) -> str:
        """Blank code or description is rejected."""
        return _strip_required(value)


class ProductUpdate(BaseModel):
    """Data that can be updated on a product. All fields optional."""

    code: str | None = Field(None, max_length=50)
    description: str | None = Field(None, max_length=500)
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    stock: int | None = Field(None, ge=0, le=MAX_STOCK)

    @field_validator("code", "description")
    @classmethod
    def require_text(cls, value: str | None) -> str | None:
        return _strip_required(value)


class Product(BaseModel):
    """Full product entity as stored."""

    id: UUID
    code: str
    description: str
    price: Decimal
    stock: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on code or description."""
        needle = query.lower()
        return needle in self.code.lower() or needle in self.description.lower()
