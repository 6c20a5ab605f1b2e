"""
Invoice service: commit, edit and delete sales invoices.

Each operation is one database transaction covering the invoice row, its
items and the stock of every product involved. Product rows are locked
before any arithmetic, totals are recomputed from the lines, and a failure at
any step rolls the whole operation back.
"""

import logging
from collections import defaultdict
from typing import Iterable
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core import stock, validation
from core.draft import DraftLine, InvoiceDraft
from core.models import (
    Invoice,
    InvoiceCreate,
    InvoiceItem,
    InvoiceLineInput,
    InvoiceUpdate,
    Product,
)
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_ITEMS_WITH_PRODUCTS = """
    SELECT
        ii.*,
        p.code AS product_code,
        p.description AS product_description,
        p.price AS product_price,
        p.stock AS product_stock,
        p.created_at AS product_created_at,
        p.updated_at AS product_updated_at
    FROM invoice_items ii
    JOIN products p ON p.id = ii.product_id
    WHERE ii.invoice_id = ANY(%s::uuid[])
    ORDER BY ii.invoice_id, ii.position ASC
"""


def _item_from_row(row: dict) -> InvoiceItem:
    """Split a joined invoice_items/products row into an item with its product."""
    product = Product(
        id=row["product_id"],
        code=row.pop("product_code"),
        description=row.pop("product_description"),
        price=row.pop("product_price"),
        stock=row.pop("product_stock"),
        created_at=row.pop("product_created_at"),
        updated_at=row.pop("product_updated_at"),
    )
    return InvoiceItem.model_validate({**row, "product": product})


class InvoiceService:
    """Service for invoice operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _read_invoices(
        self,
        executor: PostgresClient | Transaction,
        invoice_ids: Iterable[UUID] | None = None,
        lock: bool = False,
    ) -> list[Invoice]:
        """Joined read: invoices, their items in position order, each item's product."""
        if invoice_ids is None:
            rows = executor.execute(
                "SELECT * FROM invoices ORDER BY date ASC, invoice_number ASC"
            )
        else:
            rows = executor.execute(
                f"""
                SELECT * FROM invoices
                WHERE id = ANY(%s::uuid[])
                ORDER BY date ASC, invoice_number ASC
                {"FOR UPDATE" if lock else ""}
                """,
                (list(invoice_ids),)
            )

        if not rows:
            return []

        item_rows = executor.execute(_ITEMS_WITH_PRODUCTS, ([row["id"] for row in rows],))
        items_by_invoice: dict[str, list[InvoiceItem]] = defaultdict(list)
        for item_row in item_rows:
            item = _item_from_row(item_row)
            items_by_invoice[str(item.invoice_id)].append(item)

        return [
            Invoice.model_validate({**row, "items": items_by_invoice[str(row["id"])]})
            for row in rows
        ]

    def _read_one(self, executor, invoice_id: UUID, lock: bool = False) -> Invoice | None:
        invoices = self._read_invoices(executor, [invoice_id], lock=lock)
        return invoices[0] if invoices else None

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        """
        Get invoice by ID with its items and their products.

        Returns:
            Invoice if found, None otherwise.
        """
        return self._read_one(self.postgres, invoice_id)

    def list_all(self) -> list[Invoice]:
        """
        List every invoice with items and products joined.

        Returns:
            Invoices ordered by date ASC
        """
        return self._read_invoices(self.postgres)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _build_draft(
        self,
        draft: InvoiceDraft,
        lines: list[InvoiceLineInput],
        products: dict[UUID, Product],
        existing: dict[UUID, InvoiceItem],
    ) -> InvoiceDraft:
        """Replay requested lines onto a draft, validating each one."""
        for line in lines:
            if line.item_id is not None:
                item = existing.pop(line.item_id, None)
                if item is None:
                    raise ValueError(f"Invoice item {line.item_id} not found")
                draft.keep_item(item)
                continue

            product = products.get(line.product_id)
            if product is None:
                raise ValueError(f"Product {line.product_id} not found")
            draft.add_item(product, line.quantity, line.discount)

        return draft

    def _insert_items(self, tx: Transaction, invoice_id: UUID, lines: Iterable[DraftLine]) -> None:
        for position, line in enumerate(lines):
            tx.execute(
                """
                INSERT INTO invoice_items (
                    id, invoice_id, product_id, position,
                    quantity, unit_price, discount, amount
                ) VALUES (
                    %s, %s, %s, %s,
                    %s, %s, %s, %s
                )
                """,
                (
                    line.item_id or uuid4(), invoice_id, line.product_id, position,
                    line.quantity, line.unit_price, line.discount, line.amount
                )
            )

    def create(self, data: InvoiceCreate) -> Invoice:
        """
        Commit a new invoice and deduct its quantities from stock.

        Args:
            data: Invoice number, customer, requested lines and optional cash.
                  Without cash_amount the cash equals the total.

        Returns:
            Committed invoice with items

        Raises:
            ValueError: If a product is not found
            PosValidationError: On any failed rule; nothing is written
        """
        invoice_id = uuid4()
        now = now_utc()

        with self.postgres.transaction() as tx:
            products = stock.lock_products(tx, (line.product_id for line in data.items))
            draft = self._build_draft(InvoiceDraft(), data.items, products, existing={})
            if data.cash_amount is not None:
                draft.set_cash_amount(data.cash_amount)
            draft.validate_submission()
            validation.check_stock_available(products, stock.required_quantities(draft.lines))

            tx.execute(
                """
                INSERT INTO invoices (
                    id, invoice_number, date, customer_name,
                    total_amount, cash_amount, balance_amount, updated_at
                ) VALUES (
                    %s, %s, %s, %s,
                    %s, %s, %s, %s
                )
                """,
                (
                    invoice_id, data.invoice_number, data.date or now, data.customer_name,
                    draft.total_amount, draft.cash_amount, draft.balance_amount, now
                )
            )
            self._insert_items(tx, invoice_id, draft.lines)
            stock.apply_adjustments(tx, stock.deductions(draft.lines))

            invoice = self._read_one(tx, invoice_id)

        logger.info(
            f"Created invoice {invoice.invoice_number} ({invoice.id}): "
            f"{len(invoice.items)} items, total {invoice.total_amount}"
        )
        return invoice

    def update(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        """
        Replace an invoice's items and amounts, reconciling stock.

        Stock held by the original items is restored and the new items are
        deducted. Lines given by item_id keep their stored amounts. The
        per-line stock check is skipped while editing.

        Raises:
            ValueError: If invoice, item or product not found
            PosValidationError: On any failed rule; nothing is written
        """
        with self.postgres.transaction() as tx:
            current = self._read_one(tx, invoice_id, lock=True)
            if current is None:
                raise ValueError(f"Invoice {invoice_id} not found")

            product_ids = {item.product_id for item in current.items}
            product_ids.update(line.product_id for line in data.items if line.product_id is not None)
            products = stock.lock_products(tx, product_ids)

            draft = InvoiceDraft(edit_mode=True, cash_amount=current.cash_amount)
            self._build_draft(
                draft, data.items, products,
                existing={item.id: item for item in current.items},
            )
            if data.cash_amount is not None:
                draft.set_cash_amount(data.cash_amount)
            draft.validate_submission()

            if data.customer_name is None:
                customer_name = current.customer_name
            else:
                customer_name = data.customer_name.strip() or None

            now = now_utc()
            tx.execute(
                """
                UPDATE invoices
                SET invoice_number = %s, customer_name = %s,
                    total_amount = %s, cash_amount = %s, balance_amount = %s,
                    updated_at = %s
                WHERE id = %s
                """,
                (
                    data.invoice_number or current.invoice_number, customer_name,
                    draft.total_amount, draft.cash_amount, draft.balance_amount,
                    now, invoice_id
                )
            )
            tx.execute("DELETE FROM invoice_items WHERE invoice_id = %s", (invoice_id,))
            self._insert_items(tx, invoice_id, draft.lines)
            stock.apply_adjustments(tx, stock.net_adjustments(current.items, draft.lines))

            updated = self._read_one(tx, invoice_id)

        logger.info(
            f"Updated invoice {updated.invoice_number} ({invoice_id}): "
            f"total {current.total_amount} -> {updated.total_amount}"
        )
        return updated

    def delete(self, invoice_id: UUID) -> bool:
        """
        Delete an invoice, restoring the stock its items took.

        Returns:
            True if deleted, False if not found
        """
        with self.postgres.transaction() as tx:
            current = self._read_one(tx, invoice_id, lock=True)
            if current is None:
                return False

            stock.lock_products(tx, (item.product_id for item in current.items))
            stock.apply_adjustments(tx, stock.restorations(current.items))
            tx.execute("DELETE FROM invoice_items WHERE invoice_id = %s", (invoice_id,))
            tx.execute("DELETE FROM invoices WHERE id = %s", (invoice_id,))

        logger.info(f"Deleted invoice {current.invoice_number} ({invoice_id})")
        return True
