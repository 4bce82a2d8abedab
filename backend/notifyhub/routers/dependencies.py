"""Shared router dependencies."""
from fastapi import Request

from ..services.notifications import NotificationService


def get_notification_service(request: Request) -> NotificationService:
    """Get the process-wide notification service built at startup."""
    return request.app.state.notification_service
