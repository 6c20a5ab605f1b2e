"""Shared test fixtures for the point-of-sale test suite."""

import os
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Drop any cached Vault client so the .env values are picked up
from clients.vault_client import reset_vault_state
reset_vault_state()

from core import billing
from core.models import Invoice, InvoiceItem, Product
from utils.timezone import now_utc


# =============================================================================
# IN-MEMORY MODEL FACTORIES: no DB needed
# =============================================================================


def build_product(code="8-ND", price="100.00", stock=10, description=None, id=None) -> Product:
    now = now_utc()
    return Product(
        id=id or uuid4(),
        code=code,
        description=description or f"Product {code}",
        price=Decimal(price),
        stock=stock,
        created_at=now,
        updated_at=now,
    )


def build_invoice(
    lines: list[tuple[Product, int, str]],
    cash_amount: str | None = None,
    invoice_number: str = "A001",
    customer_name: str | None = None,
    date=None,
) -> Invoice:
    """
    Build a committed-looking invoice from (product, quantity, discount) lines.

    Cash defaults to the total, like a submission without manual cash entry.
    """
    invoice_id = uuid4()
    items = []
    for position, (product, quantity, discount) in enumerate(lines):
        items.append(InvoiceItem(
            id=uuid4(),
            invoice_id=invoice_id,
            product_id=product.id,
            position=position,
            quantity=quantity,
            unit_price=product.price,
            discount=Decimal(discount),
            amount=billing.line_amount(product.price, quantity, Decimal(discount)),
            product=product,
        ))

    total = billing.invoice_total(item.amount for item in items)
    cash = billing.to_money(cash_amount) if cash_amount is not None else total
    now = now_utc()
    return Invoice(
        id=invoice_id,
        invoice_number=invoice_number,
        date=date or now,
        customer_name=customer_name,
        total_amount=total,
        cash_amount=cash,
        balance_amount=billing.balance(cash, total),
        updated_at=now,
        items=items,
    )


@pytest.fixture
def make_product():
    """Factory for in-memory products."""
    return build_product


@pytest.fixture
def make_invoice():
    """Factory for in-memory invoices."""
    return build_invoice


@pytest.fixture
def product() -> Product:
    """The standard test product: 8-ND at 100.00 with 10 in stock."""
    return build_product()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def db():
    """
    Session-scoped PostgresClient against DATABASE_URL.

    Tests that use it are skipped when DATABASE_URL is not set.
    """
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL not set")

    from clients.postgres_client import PostgresClient
    from clients.vault_client import get_database_url
    from main import apply_schema

    client = PostgresClient(get_database_url())
    apply_schema(client)
    yield client
    client.close()


@pytest.fixture
def clean_db(db):
    """Empty every table before the test."""
    db.execute("TRUNCATE invoice_items, invoices, products CASCADE")
    yield db


@pytest.fixture
def product_service(clean_db):
    from core.services.product_service import ProductService
    return ProductService(clean_db)


@pytest.fixture
def invoice_service(clean_db):
    from core.services.invoice_service import InvoiceService
    return InvoiceService(clean_db)


@pytest.fixture
def stocked_product(product_service):
    """8-ND at 100.00 with 10 in stock, persisted."""
    from core.models import ProductCreate
    return product_service.create(ProductCreate(
        code="8-ND", description="Resistor pack", price=Decimal("100.00"), stock=10,
    ))


@pytest.fixture
def stock_of(clean_db):
    """Read a product's stock straight from the database."""
    def read(product_id: UUID) -> int:
        return clean_db.execute_scalar("SELECT stock FROM products WHERE id = %s", (product_id,))
    return read
