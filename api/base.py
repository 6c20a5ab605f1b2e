"""
Response envelope shared by every /api endpoint.

    {"success": true,  "data": {...}, "error": null, "meta": {...}}
    {"success": false, "data": null,  "error": {"code", "message"}, "meta": {...}}

meta.request_id echoes the X-Request-ID header set by RequestIDMiddleware so
a failed call in the UI can be matched to the server log line.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field
from starlette.requests import Request

from utils.timezone import now_utc


class APIError(BaseModel):
    code: str = Field(..., description="One of ErrorCodes")
    message: str = Field(..., description="Shown to the operator as-is")


class APIMeta(BaseModel):
    timestamp: datetime = Field(default_factory=now_utc)
    request_id: str = Field(default_factory=lambda: str(uuid4()))


class APIResponse(BaseModel):
    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(request_id=request_id) if request_id else APIMeta()


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta(request_id))


def error_response(code: str, message: str, request_id: str | None = None) -> APIResponse:
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message),
        meta=_meta(request_id),
    )


def request_id_of(request: Request) -> str | None:
    """Request ID assigned by RequestIDMiddleware, if it ran."""
    return getattr(request.state, "request_id", None)


class ErrorCodes:
    """Values of error.code. Clients branch on these, never on message text."""

    NOT_FOUND = "NOT_FOUND"

    # Request shape (422) vs. business rule (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_REQUEST = "INVALID_REQUEST"

    EMPTY_INVOICE = "EMPTY_INVOICE"
    INSUFFICIENT_CASH = "INSUFFICIENT_CASH"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    PRODUCT_IN_USE = "PRODUCT_IN_USE"

    INTERNAL_ERROR = "INTERNAL_ERROR"
