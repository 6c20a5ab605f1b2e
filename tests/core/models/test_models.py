"""Tests for core domain models - custom validators only."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError


class TestProductCreate:
    """Tests for ProductCreate validators."""

    def test_strips_code_and_description(self):
        from core.models import ProductCreate

        p = ProductCreate(code=" 8-ND ", description=" Resistor pack ", price=Decimal("100"))
        assert p.code == "8-ND"
        assert p.description == "Resistor pack"
        assert p.stock == 0

    def test_blank_code_rejected(self):
        from core.models import ProductCreate

        with pytest.raises(ValidationError, match="code and description are required"):
            ProductCreate(code="  ", description="Thing", price=Decimal("1"))

    def test_blank_description_rejected(self):
        from core.models import ProductCreate

        with pytest.raises(ValidationError, match="code and description are required"):
            ProductCreate(code="X", description="", price=Decimal("1"))

    @pytest.mark.parametrize("price", ["0", "-5"])
    def test_price_must_be_positive(self, price):
        from core.models import ProductCreate

        with pytest.raises(ValidationError):
            ProductCreate(code="X", description="Thing", price=Decimal(price))

    def test_negative_stock_rejected(self):
        from core.models import ProductCreate

        with pytest.raises(ValidationError):
            ProductCreate(code="X", description="Thing", price=Decimal("1"), stock=-1)

    def test_stock_above_integer_headroom_rejected(self):
        from core.models import ProductCreate
        from core.models.product import MAX_STOCK

        with pytest.raises(ValidationError):
            ProductCreate(code="X", description="Thing", price=Decimal("1"), stock=MAX_STOCK + 1)


class TestProductUpdate:
    """Tests for ProductUpdate."""

    def test_all_optional(self):
        from core.models import ProductUpdate

        assert ProductUpdate().model_dump(exclude_none=True) == {}

    def test_blank_code_rejected(self):
        from core.models import ProductUpdate

        with pytest.raises(ValidationError):
            ProductUpdate(code=" ")


class TestProductMatches:

    def test_case_insensitive_code_or_description(self, make_product):
        p = make_product("8-ND", description="Resistor pack")

        assert p.matches("8-nd")
        assert p.matches("RESISTOR")
        assert not p.matches("capacitor")


class TestInvoiceLineInput:

    def test_requires_exactly_one_source(self):
        from core.models import InvoiceLineInput

        with pytest.raises(ValidationError, match="Exactly one"):
            InvoiceLineInput()
        with pytest.raises(ValidationError, match="Exactly one"):
            InvoiceLineInput(item_id=uuid4(), product_id=uuid4())

    def test_defaults(self):
        from core.models import InvoiceLineInput

        line = InvoiceLineInput(product_id=uuid4())
        assert line.quantity == 1
        assert line.discount == Decimal("0")

    def test_quantity_capped(self):
        from core.models import InvoiceLineInput
        from core.models.invoice import MAX_QUANTITY

        assert InvoiceLineInput(product_id=uuid4(), quantity=MAX_QUANTITY).quantity == MAX_QUANTITY
        with pytest.raises(ValidationError):
            InvoiceLineInput(product_id=uuid4(), quantity=10**10)


class TestInvoiceCreate:

    def test_blank_customer_name_is_none(self):
        from core.models import InvoiceCreate

        data = InvoiceCreate(invoice_number="A001", customer_name="   ")
        assert data.customer_name is None

    def test_rejects_kept_items(self):
        from core.models import InvoiceCreate

        with pytest.raises(ValidationError, match="cannot keep items"):
            InvoiceCreate(invoice_number="A001", items=[{"item_id": str(uuid4())}])

    def test_date_converted_to_utc(self):
        from core.models import InvoiceCreate

        colombo = timezone(timedelta(hours=5, minutes=30))
        data = InvoiceCreate(invoice_number="A001", date=datetime(2024, 1, 1, 12, 0, tzinfo=colombo))
        assert data.date == datetime(2024, 1, 1, 6, 30, tzinfo=timezone.utc)

    def test_negative_cash_rejected(self):
        from core.models import InvoiceCreate

        with pytest.raises(ValidationError):
            InvoiceCreate(invoice_number="A001", cash_amount=Decimal("-1"))


class TestInvoice:
    """Derived amounts are checked whenever an invoice is built."""

    def test_consistent_invoice_accepted(self, product, make_invoice):
        invoice = make_invoice([(product, 2, "5")], cash_amount="200")

        assert invoice.total_amount == Decimal("195.00")
        assert invoice.balance_amount == Decimal("5.00")
        assert invoice.item_count == 2

    def test_balance_drift_rejected(self, product, make_invoice):
        from core.models import Invoice

        data = make_invoice([(product, 2, "5")]).model_dump()
        data["balance_amount"] = Decimal("1.00")

        with pytest.raises(ValidationError, match="balance"):
            Invoice.model_validate(data)

    def test_total_drift_rejected(self, product, make_invoice):
        from core.models import Invoice

        data = make_invoice([(product, 2, "5")]).model_dump()
        data["total_amount"] = Decimal("200.00")
        data["balance_amount"] = Decimal("-5.00")

        with pytest.raises(ValidationError, match="sum of item amounts"):
            Invoice.model_validate(data)
