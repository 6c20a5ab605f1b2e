"""
Application entry point.

Builds the FastAPI app with every collaborator constructed explicitly and
handed to the routers. Run with:

    uvicorn main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from clients.postgres_client import PostgresClient
from clients.vault_client import get_database_url
from core.config import PosConfig, load_config
from core.event_bus import EventBus
from core.events import Notification
from core.handlers.notification_handler import NotificationFeed, handle_notification
from core.mirror import StoreMirror
from core.services.invoice_service import InvoiceService
from core.services.product_service import ProductService

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def apply_schema(postgres: PostgresClient) -> None:
    """Create the tables if they don't exist yet."""
    postgres.execute_script(SCHEMA_PATH.read_text())


def build_services(postgres: PostgresClient, config: PosConfig) -> dict:
    """Wire services, event bus, notification feed and mirror together."""
    event_bus = EventBus()
    notifications = NotificationFeed(config.notification_buffer_size)
    event_bus.subscribe(Notification, handle_notification(notifications))

    product_service = ProductService(postgres)
    invoice_service = InvoiceService(postgres)
    mirror = StoreMirror(product_service, invoice_service, event_bus, config)

    return {
        "config": config,
        "event_bus": event_bus,
        "notifications": notifications,
        "product": product_service,
        "invoice": invoice_service,
        "mirror": mirror,
    }


def create_app(postgres: PostgresClient | None = None, config: PosConfig | None = None) -> FastAPI:
    """
    Create the app.

    Args:
        postgres: Database client; built from get_database_url() if omitted
        config: Store config; read from POS_* environment variables if omitted
    """
    config = config or load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    postgres = postgres or PostgresClient(get_database_url())
    services = build_services(postgres, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        apply_schema(postgres)
        services["mirror"].load()
        yield
        postgres.close()

    app = FastAPI(title=f"{config.shop_name} point of sale", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")

    return app
