"""POST /api/actions: unified mutation endpoint."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from api.base import request_id_of, success_response
from core.models import (
    InvoiceCreate,
    InvoiceLineInput,
    InvoiceUpdate,
    ProductCreate,
    ProductUpdate,
)


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict = Field(default_factory=dict)


class PreviewRequest(BaseModel):
    """Draft lines to price. invoice_id opens an existing invoice for editing."""

    invoice_id: UUID | None = None
    items: list[InvoiceLineInput] = Field(default_factory=list)
    cash_amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)


def _require_id(data: dict) -> UUID:
    if "id" not in data:
        raise ValueError("'id' is required")
    try:
        return UUID(str(data.pop("id")))
    except ValueError:
        raise ValueError("'id' must be a UUID")


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    mirror = services["mirror"]
    handlers = {
        "product": ProductHandler(mirror),
        "invoice": InvoiceHandler(mirror),
        "mirror": MirrorHandler(mirror),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        return success_response(result, request_id_of(request)).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class ProductHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete"}

    def __init__(self, mirror):
        self.mirror = mirror

    def _handle_create(self, data: dict):
        product = self.mirror.add_product(ProductCreate.model_validate(data))
        return product.model_dump(mode="json")

    def _handle_update(self, data: dict):
        product_id = _require_id(data)
        product = self.mirror.update_product(product_id, ProductUpdate.model_validate(data))
        return product.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        self.mirror.delete_product(_require_id(data))
        return {"deleted": True}


class InvoiceHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete", "preview"}

    def __init__(self, mirror):
        self.mirror = mirror

    def _handle_create(self, data: dict):
        invoice = self.mirror.add_invoice(InvoiceCreate.model_validate(data))
        return invoice.model_dump(mode="json")

    def _handle_update(self, data: dict):
        invoice_id = _require_id(data)
        invoice = self.mirror.update_invoice(invoice_id, InvoiceUpdate.model_validate(data))
        return invoice.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        self.mirror.delete_invoice(_require_id(data))
        return {"deleted": True}

    def _handle_preview(self, data: dict):
        request = PreviewRequest.model_validate(data)
        preview = self.mirror.preview_invoice(
            request.items, cash_amount=request.cash_amount, invoice_id=request.invoice_id
        )
        return preview.model_dump(mode="json")


class MirrorHandler:
    ALLOWED_ACTIONS = {"refresh"}

    def __init__(self, mirror):
        self.mirror = mirror

    def _handle_refresh(self, data: dict):
        self.mirror.refresh()
        return {
            "products": len(self.mirror.products),
            "invoices": len(self.mirror.invoices),
        }
