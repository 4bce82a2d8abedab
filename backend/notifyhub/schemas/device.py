"""Device and notification schemas for API responses."""
from typing import Optional
from pydantic import BaseModel


class DeviceRegisterResponse(BaseModel):
    """Response after registering a device."""
    success: bool = True
    api_key: str
    message: str


class DeviceTokenUpdateResponse(BaseModel):
    """Response after repointing a device's push token."""
    success: bool = True
    message: str


class NotificationSendResponse(BaseModel):
    """Response after sending a push notification."""
    success: bool = True
    message: str
    message_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform failure envelope."""
    success: bool = False
    error: str
