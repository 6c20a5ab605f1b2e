"""
Product service for the product catalog.

Products carry the price new invoice lines are charged at and the stock that
invoices deduct from. Stock is normally moved by InvoiceService; the product
form may also set it directly (initial stock, manual corrections).
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.exceptions import ProductInUseError
from core.models import Product, ProductCreate, ProductUpdate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {"code", "description", "price", "stock"}


class ProductService:
    """Service for product catalog operations."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, data: ProductCreate) -> Product:
        """
        Create a new product.

        Args:
            data: Product creation data

        Returns:
            Created product
        """
        product_id = uuid4()
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO products (
                id, code, description, price, stock, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s, %s, %s
            )
            RETURNING *
            """,
            (
                product_id, data.code, data.description, data.price, data.stock, now, now
            )
        )[0]

        product = Product.model_validate(row)
        logger.info(f"Created product {product.code} ({product.id})")
        return product

    def get_by_id(self, product_id: UUID) -> Product | None:
        """
        Get product by ID.

        Returns:
            Product if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM products WHERE id = %s",
            (product_id,)
        )

        if row is None:
            return None

        return Product.model_validate(row)

    def list_all(self) -> list[Product]:
        """
        List every product.

        Returns:
            Products in the order they were added
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM products
            ORDER BY created_at ASC, code ASC
            """
        )

        return [Product.model_validate(row) for row in rows]

    def update(self, product_id: UUID, data: ProductUpdate) -> Product:
        """
        Update product fields.

        Price changes only affect invoice lines added afterwards; stored
        line amounts are frozen.

        Raises:
            ValueError: If product not found
        """
        current = self.get_by_id(product_id)
        if current is None:
            raise ValueError(f"Product {product_id} not found")

        updates = data.model_dump(exclude_none=True)
        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
        if not valid_updates:
            return current

        set_parts = []
        params = []
        for field, value in valid_updates.items():
            set_parts.append(f"{field} = %s")
            params.append(value)

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(product_id)

        row = self.postgres.execute_returning(
            f"""
            UPDATE products
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        updated = Product.model_validate(row)
        logger.info(f"Updated product {updated.code} ({product_id}): {', '.join(sorted(valid_updates))}")
        return updated

    def delete(self, product_id: UUID) -> bool:
        """
        Delete a product.

        Returns:
            True if deleted, False if not found

        Raises:
            ProductInUseError: If any invoice line references the product
        """
        current = self.get_by_id(product_id)
        if current is None:
            return False

        in_use = self.postgres.execute_scalar(
            "SELECT EXISTS (SELECT 1 FROM invoice_items WHERE product_id = %s)",
            (product_id,)
        )
        if in_use:
            raise ProductInUseError(current.code)

        self.postgres.execute_returning(
            "DELETE FROM products WHERE id = %s RETURNING id",
            (product_id,)
        )

        logger.info(f"Deleted product {current.code} ({product_id})")
        return True
