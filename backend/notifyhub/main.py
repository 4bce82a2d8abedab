"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_database_url, get_service_account_path, settings as default_settings
from .database import Database
from .exceptions import register_exception_handlers
from .routers import devices_router, device_token_router, notifications_router, legacy_router
from .services.credential_broker import CredentialBroker
from .services.device_registry import DeviceRegistry
from .services.notifications import NotificationService
from .services.push_sender import PushSenderService
from .services.request_gate import RequestGate

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration, defaults to the environment
        transport: Transport for outbound HTTP calls, used by tests
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        logger.info("Starting NotifyHub")

        database = Database(get_database_url(settings))
        await database.init()
        logger.info("Database initialized")

        http_client = httpx.AsyncClient(timeout=settings.http_timeout, transport=transport)
        broker = CredentialBroker(
            service_account_path=get_service_account_path(settings),
            http_client=http_client,
            scope=settings.fcm_scope,
            refresh_margin=settings.token_refresh_margin,
        )
        sender = PushSenderService(broker, http_client, api_base=settings.fcm_api_base)
        registry = DeviceRegistry(database, default_device_info=settings.default_device_info)

        app.state.database = database
        app.state.notification_service = NotificationService(
            gate=RequestGate(settings.secret_key),
            registry=registry,
            sender=sender,
        )

        yield

        # Shutdown
        await http_client.aclose()
        await database.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="NotifyHub",
        description="Register devices and send them push notifications",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Secret-Key", "Authorization"],
    )

    register_exception_handlers(app)

    app.include_router(devices_router)
    app.include_router(notifications_router)
    app.include_router(legacy_router)
    if settings.expose_token_update:
        app.include_router(device_token_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=default_settings.web_port)
