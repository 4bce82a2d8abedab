"""Error taxonomy and FastAPI handlers."""
from .base import (
    NotifyHubError,
    ValidationError,
    AuthError,
    NotFoundError,
    CredentialError,
    DispatchError,
    TransportError,
    PersistenceError,
)
from .handlers import register_exception_handlers

__all__ = [
    "NotifyHubError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "CredentialError",
    "DispatchError",
    "TransportError",
    "PersistenceError",
    "register_exception_handlers",
]
