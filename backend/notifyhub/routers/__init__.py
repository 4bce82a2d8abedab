"""API routers."""
from .devices import router as devices_router, token_router as device_token_router
from .notifications import router as notifications_router
from .legacy import router as legacy_router

__all__ = ["devices_router", "device_token_router", "notifications_router", "legacy_router"]
