"""API test fixtures: TestClient over a real mirror with mocked services."""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from core.config import PosConfig
from core.services.invoice_service import InvoiceService
from core.services.product_service import ProductService
from main import build_services


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def config():
    return PosConfig(shop_name="Corner Shop", timezone="Asia/Colombo")


@pytest.fixture
def services(config, product):
    """Real mirror, event bus and feed; product/invoice services are mocks."""
    services = build_services(Mock(), config)

    product_svc = Mock(spec=ProductService)
    product_svc.list_all.return_value = [product]
    invoice_svc = Mock(spec=InvoiceService)
    invoice_svc.list_all.return_value = []

    mirror = services["mirror"]
    mirror.product_service = product_svc
    mirror.invoice_service = invoice_svc
    mirror.load()

    services["product"] = product_svc
    services["invoice"] = invoice_svc
    return services


@pytest.fixture
def product_svc(services):
    return services["product"]


@pytest.fixture
def invoice_svc(services):
    return services["invoice"]


@pytest.fixture
def mirror(services):
    return services["mirror"]


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """FastAPI app with error handlers and data/actions routes."""
    from api.data import create_data_router
    from api.actions import create_actions_router

    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
