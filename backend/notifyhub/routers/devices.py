"""Device registration API endpoints for push notifications."""
import logging

from fastapi import APIRouter, Depends, Request

from ..schemas.device import (
    DeviceRegisterResponse,
    DeviceTokenUpdateResponse,
    ErrorResponse,
)
from ..services.notifications import NotificationService
from ..services.request_gate import RequestGate
from ..utils.request_params import RequestParams, collect_params
from .dependencies import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["devices"])

token_router = APIRouter(prefix="/api/devices", tags=["devices"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


async def handle_register(
    params: RequestParams,
    service: NotificationService,
) -> DeviceRegisterResponse:
    """Register a push token and hand back its API key."""
    registration = await service.register(
        presented_secret=RequestGate.extract_secret(params.headers, params.query, params.body),
        push_token=params.first("fcm_token", source=params.body),
        device_info=params.first("device_info", source=params.body),
    )
    return DeviceRegisterResponse(
        api_key=registration.api_key,
        message=(
            "Device registered successfully"
            if registration.created
            else "Device already registered"
        ),
    )


@router.post("/register", response_model=DeviceRegisterResponse, responses=ERROR_RESPONSES)
async def register_device(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
):
    """Register a device for push notifications.

    Requires the shared secret. Registering a token that is already known
    returns the API key issued the first time.
    """
    return await handle_register(await collect_params(request), service)


@token_router.post("/token", response_model=DeviceTokenUpdateResponse, responses=ERROR_RESPONSES)
async def update_device_token(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
):
    """Point an existing API key at a refreshed push token."""
    params = await collect_params(request)
    await service.update_token(
        presented_secret=RequestGate.extract_secret(params.headers, params.query, params.body),
        api_key=params.first("k", "api_key", source=params.body),
        push_token=params.first("fcm_token", source=params.body),
    )
    return DeviceTokenUpdateResponse(message="Device token updated successfully")
