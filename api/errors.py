"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from api.base import error_response, request_id_of, ErrorCodes
from core.exceptions import (
    EmptyInvoiceError,
    InsufficientCashError,
    InsufficientStockError,
    PosValidationError,
    ProductInUseError,
)

logger = logging.getLogger(__name__)

_VALIDATION_CODES = {
    EmptyInvoiceError: ErrorCodes.EMPTY_INVOICE,
    InsufficientCashError: ErrorCodes.INSUFFICIENT_CASH,
    InsufficientStockError: ErrorCodes.INSUFFICIENT_STOCK,
}


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, request_id_of(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(PosValidationError)
    async def pos_validation_error_handler(request: Request, exc: PosValidationError):
        code = _VALIDATION_CODES.get(type(exc), ErrorCodes.VALIDATION_FAILED)
        return _error(request, 400, code, str(exc))

    @app.exception_handler(ProductInUseError)
    async def product_in_use_handler(request: Request, exc: ProductInUseError):
        return _error(request, 400, ErrorCodes.PRODUCT_IN_USE, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _error(request, 404, ErrorCodes.NOT_FOUND, message)
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(ValidationError)
    async def model_validation_error_handler(request: Request, exc: ValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(request, 404, ErrorCodes.NOT_FOUND, f"No route for {request.url.path}")
        return _error(request, exc.status_code, ErrorCodes.INVALID_REQUEST, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
