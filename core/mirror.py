"""
In-process mirror of the store's products and invoices.

The mirror is the single read model the API serves from. It is loaded once
at startup and then patched after each successful write:

- Product create/update/delete: patched locally from the returned row.
- Invoice create: invoice appended; product stock reduced locally by the
  submitted quantities.
- Invoice update/delete: invoice list patched; products re-fetched, since the
  net stock change depends on what the invoice held before.

Every mutation publishes a Notification. Rejected input publishes its
validation message; any other failure is logged, reported with a generic
message and re-raised to the caller.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from decimal import Decimal
from uuid import UUID

from core import stock
from core.config import PosConfig
from core.draft import InvoiceDraft
from core.event_bus import EventBus
from core.events import Notification
from core.exceptions import PosError
from core.models import (
    DashboardSummary,
    Invoice,
    InvoiceCreate,
    InvoiceLineInput,
    InvoicePreview,
    InvoiceUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
)
from core.services.invoice_service import InvoiceService
from core.services.product_service import ProductService

logger = logging.getLogger(__name__)


class StoreMirror:
    """Snapshot of all products and invoices, kept in step with the database."""

    def __init__(
        self,
        product_service: ProductService,
        invoice_service: InvoiceService,
        event_bus: EventBus,
        config: PosConfig | None = None,
    ):
        self.product_service = product_service
        self.invoice_service = invoice_service
        self.event_bus = event_bus
        self.config = config or PosConfig()

        self._products: list[Product] = []
        self._invoices: list[Invoice] = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """Fetch every product and invoice in parallel and replace the snapshot."""
        with self._reporting("Failed to load data from the database"):
            with ThreadPoolExecutor(max_workers=2) as pool:
                products_future = pool.submit(self.product_service.list_all)
                invoices_future = pool.submit(self.invoice_service.list_all)
                products = products_future.result()
                invoices = invoices_future.result()

        with self._lock:
            self._products = products
            self._invoices = invoices

        logger.info(f"Loaded {len(products)} products and {len(invoices)} invoices")

    def refresh(self) -> None:
        self.load()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def products(self) -> list[Product]:
        with self._lock:
            return list(self._products)

    @property
    def invoices(self) -> list[Invoice]:
        with self._lock:
            return list(self._invoices)

    def get_product(self, product_id: UUID) -> Product | None:
        with self._lock:
            return next((p for p in self._products if p.id == product_id), None)

    def get_invoice(self, invoice_id: UUID) -> Invoice | None:
        with self._lock:
            return next((i for i in self._invoices if i.id == invoice_id), None)

    def search_products(self, query: str) -> list[Product]:
        """Case-insensitive substring match on code or description. Blank matches all."""
        query = query.strip()
        products = self.products
        if not query:
            return products
        return [p for p in products if p.matches(query)]

    def next_invoice_number(self) -> str:
        """
        Suggested number for the next invoice, e.g. A001.

        Advisory only: it is derived from the invoice count, so deleting an
        invoice can make it repeat an existing number.
        """
        sequence = len(self.invoices) + 1
        return f"{self.config.invoice_number_prefix}{sequence:0{self.config.invoice_number_width}d}"

    def summary(self) -> DashboardSummary:
        products = self.products
        invoices = self.invoices
        recent = sorted(invoices, key=lambda i: i.date, reverse=True)
        return DashboardSummary(
            product_count=len(products),
            total_stock=sum(p.stock for p in products),
            invoice_count=len(invoices),
            total_sales=sum((i.total_amount for i in invoices), Decimal("0.00")),
            recent_invoices=recent[:self.config.recent_invoice_limit],
        )

    def preview_invoice(
        self,
        items: list[InvoiceLineInput],
        cash_amount: Decimal | None = None,
        invoice_id: UUID | None = None,
    ) -> InvoicePreview:
        """
        Compute a draft against the current snapshot without writing anything.

        With invoice_id the draft is opened in edit mode: lines may keep that
        invoice's items by item_id, and the stock check is skipped.

        Raises:
            PosValidationError: If a line fails validation
            ValueError: If the invoice or a kept item is not found
        """
        with self._reporting("Failed to preview invoice"):
            existing = {}
            if invoice_id is None:
                draft = InvoiceDraft()
            else:
                invoice = self.get_invoice(invoice_id)
                if invoice is None:
                    raise ValueError(f"Invoice {invoice_id} not found")
                draft = InvoiceDraft(edit_mode=True, cash_amount=invoice.cash_amount)
                existing = {item.id: item for item in invoice.items}

            for line in items:
                if line.item_id is not None:
                    item = existing.pop(line.item_id, None)
                    if item is None:
                        raise ValueError(f"Invoice item {line.item_id} not found")
                    draft.keep_item(item)
                else:
                    draft.add_item(self.get_product(line.product_id), line.quantity, line.discount)

            if cash_amount is not None:
                draft.set_cash_amount(cash_amount)

        return draft.preview()

    # -------------------------------------------------------------------------
    # Product mutations
    # -------------------------------------------------------------------------

    def add_product(self, data: ProductCreate) -> Product:
        with self._reporting("Failed to add product"):
            product = self.product_service.create(data)

        with self._lock:
            self._products.append(product)

        self._notify("Product added", "Product has been added to inventory")
        return product

    def update_product(self, product_id: UUID, data: ProductUpdate) -> Product:
        with self._reporting("Failed to update product"):
            product = self.product_service.update(product_id, data)

        with self._lock:
            self._products = [product if p.id == product_id else p for p in self._products]

        self._notify("Product updated", "Product has been updated successfully")
        return product

    def delete_product(self, product_id: UUID) -> bool:
        with self._reporting("Failed to delete product"):
            deleted = self.product_service.delete(product_id)
            if not deleted:
                raise ValueError(f"Product {product_id} not found")

        with self._lock:
            self._products = [p for p in self._products if p.id != product_id]

        self._notify("Product deleted", "Product has been removed from inventory")
        return deleted

    # -------------------------------------------------------------------------
    # Invoice mutations
    # -------------------------------------------------------------------------

    def add_invoice(self, data: InvoiceCreate) -> Invoice:
        with self._reporting("Failed to create invoice"):
            invoice = self.invoice_service.create(data)

        taken = stock.required_quantities(invoice.items)
        with self._lock:
            self._invoices.append(invoice)
            self._products = [
                p.model_copy(update={"stock": p.stock - taken[p.id]}) if p.id in taken else p
                for p in self._products
            ]

        self._notify("Success", "Invoice created successfully")
        return invoice

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        with self._reporting("Failed to update invoice"):
            invoice = self.invoice_service.update(invoice_id, data)
            products = self.product_service.list_all()

        with self._lock:
            self._invoices = [invoice if i.id == invoice_id else i for i in self._invoices]
            self._products = products

        self._notify("Success", "Invoice updated successfully")
        return invoice

    def delete_invoice(self, invoice_id: UUID) -> bool:
        with self._reporting("Failed to delete invoice"):
            deleted = self.invoice_service.delete(invoice_id)
            if not deleted:
                raise ValueError(f"Invoice {invoice_id} not found")
            products = self.product_service.list_all()

        with self._lock:
            self._invoices = [i for i in self._invoices if i.id != invoice_id]
            self._products = products

        self._notify("Success", "Invoice deleted successfully")
        return deleted

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _notify(self, title: str, description: str) -> None:
        self.event_bus.publish(Notification.create(title, description))

    @contextmanager
    def _reporting(self, failure_message: str):
        """
        Publish a failure notification for anything raised inside, then re-raise.

        Rejected input (PosError, ValueError) is reported with its own message.
        Everything else is logged with traceback and reported generically.
        """
        try:
            yield
        except (PosError, ValueError) as e:
            self.event_bus.publish(Notification.failure(str(e)))
            raise
        except Exception:
            logger.exception(failure_message)
            self.event_bus.publish(Notification.failure(failure_message))
            raise
