"""GET /api/data: unified read endpoint, served from the store mirror."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse

from api.base import request_id_of, success_response
from core.receipt import render_receipt


VALID_TYPES = {"products", "invoices"}


def _parse_id(value: str, kind: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise ValueError(f"Invalid {kind} id '{value}'")


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    mirror = services["mirror"]
    notifications = services["notifications"]
    config = services["config"]

    # -------------------------------------------------------------------------
    # Convenience routes (must be registered before the generic /data route)
    # -------------------------------------------------------------------------

    @router.get("/data/summary")
    async def summary(request: Request):
        return success_response(
            mirror.summary().model_dump(mode="json"), request_id_of(request)
        ).model_dump(mode="json")

    @router.get("/data/invoices/next-number")
    async def next_invoice_number(request: Request):
        return success_response(
            {"invoice_number": mirror.next_invoice_number()}, request_id_of(request)
        ).model_dump(mode="json")

    @router.get("/data/invoices/{invoice_id}/receipt", response_class=PlainTextResponse)
    async def invoice_receipt(request: Request, invoice_id: str):
        invoice = mirror.get_invoice(_parse_id(invoice_id, "invoice"))
        if invoice is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        return PlainTextResponse(render_receipt(invoice, config))

    @router.get("/data/notifications")
    async def drain_notifications(request: Request):
        pending = notifications.drain()
        return success_response(
            [
                {
                    "title": n.title,
                    "description": n.description,
                    "destructive": n.destructive,
                    "occurred_at": n.occurred_at.isoformat(),
                }
                for n in pending
            ],
            request_id_of(request),
        ).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Generic data endpoint
    # -------------------------------------------------------------------------

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        search: str | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "products":
            data = _handle_products(mirror, id, search)
        else:
            data = _handle_invoices(mirror, id)

        return success_response(data, request_id_of(request)).model_dump(mode="json")

    return router


def _handle_products(mirror, id, search):
    if id:
        product = mirror.get_product(_parse_id(id, "product"))
        if product is None:
            raise ValueError(f"Product {id} not found")
        return product.model_dump(mode="json")

    products = mirror.search_products(search) if search else mirror.products
    return [p.model_dump(mode="json") for p in products]


def _handle_invoices(mirror, id):
    if id:
        invoice = mirror.get_invoice(_parse_id(id, "invoice"))
        if invoice is None:
            raise ValueError(f"Invoice {id} not found")
        return invoice.model_dump(mode="json")

    return [i.model_dump(mode="json") for i in mirror.invoices]
