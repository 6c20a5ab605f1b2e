"""Core domain models."""

from core.models.product import Product, ProductCreate, ProductUpdate
from core.models.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceItem,
    InvoiceLineInput,
    InvoicePreview,
    InvoicePreviewLine,
)
from core.models.summary import DashboardSummary

__all__ = [
    # Product
    "Product", "ProductCreate", "ProductUpdate",
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceUpdate", "InvoiceItem", "InvoiceLineInput",
    "InvoicePreview", "InvoicePreviewLine",
    # Dashboard
    "DashboardSummary",
]
