"""
Stock reconciliation for invoice create, edit and delete.

Planning is pure: the functions below turn item lists into per-product stock
deltas. apply_adjustments() writes those deltas inside the caller's
transaction as relative updates (stock = stock + delta) against rows the
caller has already locked, so the arithmetic never uses a stale snapshot.

    create: deduct every new line
    edit:   restore every original item, then deduct every new line
    delete: restore every original item
"""

import logging
from collections import defaultdict
from typing import Iterable, Mapping, Protocol
from uuid import UUID

from clients.postgres_client import Transaction
from core.models import Product
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class StockLine(Protocol):
    product_id: UUID
    quantity: int


def required_quantities(lines: Iterable[StockLine]) -> dict[UUID, int]:
    """Total quantity taken per product, summed across lines."""
    required: dict[UUID, int] = defaultdict(int)
    for line in lines:
        required[line.product_id] += line.quantity
    return dict(required)


def deductions(lines: Iterable[StockLine]) -> dict[UUID, int]:
    return {product_id: -quantity for product_id, quantity in required_quantities(lines).items()}


def restorations(items: Iterable[StockLine]) -> dict[UUID, int]:
    return required_quantities(items)


def net_adjustments(original_items: Iterable[StockLine], new_lines: Iterable[StockLine]) -> dict[UUID, int]:
    """
    Restore-then-deduct collapsed into one delta per product.

    Products whose restore and deduct cancel out are omitted.
    """
    net: dict[UUID, int] = defaultdict(int)
    for product_id, delta in restorations(original_items).items():
        net[product_id] += delta
    for product_id, delta in deductions(new_lines).items():
        net[product_id] += delta
    return {product_id: delta for product_id, delta in net.items() if delta != 0}


def lock_products(tx: Transaction, product_ids: Iterable[UUID]) -> dict[UUID, Product]:
    """
    Read and row-lock products for the rest of the transaction.

    Rows are locked in id order so two transactions touching the same
    products cannot deadlock. Missing ids are simply absent from the result.
    """
    ids = sorted(set(product_ids), key=str)
    if not ids:
        return {}

    rows = tx.execute(
        """
        SELECT * FROM products
        WHERE id = ANY(%s::uuid[])
        ORDER BY id
        FOR UPDATE
        """,
        (ids,)
    )
    products = [Product.model_validate(row) for row in rows]
    return {product.id: product for product in products}


def apply_adjustments(tx: Transaction, adjustments: Mapping[UUID, int]) -> dict[UUID, int]:
    """
    Write stock deltas. Returns the resulting stock per product.

    Raises:
        ValueError: If a product no longer exists; the transaction rolls back.
    """
    now = now_utc()
    new_stock: dict[UUID, int] = {}

    for product_id in sorted(adjustments, key=str):
        delta = adjustments[product_id]
        row = tx.execute_single(
            """
            UPDATE products
            SET stock = stock + %s, updated_at = %s
            WHERE id = %s
            RETURNING id, stock
            """,
            (delta, now, product_id)
        )
        if row is None:
            raise ValueError(f"Product {product_id} not found")

        new_stock[product_id] = row["stock"]
        logger.info(f"Stock for product {product_id} adjusted by {delta:+d} to {row['stock']}")

    return new_stock
