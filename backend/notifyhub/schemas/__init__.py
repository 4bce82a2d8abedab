"""Pydantic schemas for API request/response models."""
from .device import (
    DeviceRegisterResponse,
    DeviceTokenUpdateResponse,
    NotificationSendResponse,
    ErrorResponse,
)

__all__ = [
    "DeviceRegisterResponse",
    "DeviceTokenUpdateResponse",
    "NotificationSendResponse",
    "ErrorResponse",
]
