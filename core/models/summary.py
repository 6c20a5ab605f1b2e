"""Dashboard figures derived from the store mirror."""

from decimal import Decimal

from pydantic import BaseModel

from core.models.invoice import Invoice


class DashboardSummary(BaseModel):
    """Counts and totals shown on the dashboard."""

    product_count: int
    total_stock: int
    invoice_count: int
    total_sales: Decimal
    recent_invoices: list[Invoice]
