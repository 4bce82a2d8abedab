"""Notification send API endpoints."""
import logging

from fastapi import APIRouter, Depends, Request

from ..schemas.device import NotificationSendResponse
from ..services.notifications import NotificationService, SendRequest
from ..utils.request_params import RequestParams, collect_params
from .dependencies import get_notification_service
from .devices import ERROR_RESPONSES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notifications"])


async def handle_send(
    params: RequestParams,
    service: NotificationService,
) -> NotificationSendResponse:
    """Send a notification to the device behind an API key."""
    result = await service.send(
        SendRequest(
            api_key=params.first("k", "api_key"),
            title=params.first("t", "title"),
            content=params.first("c", "content", "body"),
            url=params.first("u", "url"),
        )
    )
    return NotificationSendResponse(
        message="Notification sent successfully",
        message_id=result.message_id,
    )


@router.api_route(
    "/send",
    methods=["GET", "POST"],
    response_model=NotificationSendResponse,
    responses=ERROR_RESPONSES,
)
@router.api_route(
    "/message",
    methods=["GET", "POST"],
    response_model=NotificationSendResponse,
    responses=ERROR_RESPONSES,
    include_in_schema=False,
)
async def send_notification(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
):
    """Send a push notification.

    Accepts k/api_key, t/title, c/content/body and optional u/url from the
    query string, a form body or a JSON body.
    """
    return await handle_send(await collect_params(request), service)
