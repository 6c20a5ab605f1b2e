"""
Plain-text receipt for a committed invoice.

Fixed-width layout suitable for a receipt printer or a <pre> block. Dates are
shown in the configured local timezone; everything else is stored data.
"""

from decimal import Decimal

from core.config import PosConfig
from core.models import Invoice
from utils.timezone import format_local

WIDTH = 64


def _money(config: PosConfig, amount: Decimal) -> str:
    return f"{config.currency_label} {amount:,.2f}"


def _row(label: str, value: str) -> str:
    return f"{label}{value:>{WIDTH - len(label)}}"


def render_receipt(invoice: Invoice, config: PosConfig | None = None) -> str:
    """
    Render an invoice as text.

    Args:
        invoice: Invoice with items (and their joined products)
        config: Shop name, currency label and timezone

    Returns:
        Receipt text, newline-terminated
    """
    config = config or PosConfig()
    rule = "-" * WIDTH

    lines = [
        config.shop_name.center(WIDTH).rstrip(),
        rule,
        _row("Invoice:", invoice.invoice_number),
        _row("Date:", format_local(invoice.date, config.timezone)),
    ]
    if invoice.customer_name:
        lines.append(_row("Customer:", invoice.customer_name))

    lines.append(rule)
    lines.append(f"{'Code':<10}{'Description':<20}{'Qty':>5}{'Price':>10}{'Disc':>9}{'Amount':>10}")
    for item in invoice.items:
        code = item.product.code if item.product else ""
        description = item.product.description if item.product else ""
        lines.append(
            f"{code[:9]:<10}{description[:19]:<20}{item.quantity:>5}"
            f"{item.unit_price:>10.2f}{item.discount:>9.2f}{item.amount:>10.2f}"
        )

    lines.extend([
        rule,
        _row("Total:", _money(config, invoice.total_amount)),
        _row("Cash:", _money(config, invoice.cash_amount)),
        _row("Balance:", _money(config, invoice.balance_amount)),
        rule,
        "Thank you!".center(WIDTH).rstrip(),
    ])
    return "\n".join(lines) + "\n"
