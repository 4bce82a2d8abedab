"""Single-entry endpoint dispatching on the ``action`` query parameter."""
from fastapi import APIRouter, Depends, Request

from ..exceptions import ValidationError
from ..services.notifications import NotificationService
from ..utils.request_params import collect_params
from .dependencies import get_notification_service
from .devices import ERROR_RESPONSES, handle_register
from .notifications import handle_send

router = APIRouter(tags=["legacy"])


@router.api_route("/api.php", methods=["GET", "POST"], responses=ERROR_RESPONSES)
async def dispatch_action(
    request: Request,
    action: str = "message",
    service: NotificationService = Depends(get_notification_service),
):
    """Route ``?action=register|send|message`` to the matching handler."""
    params = await collect_params(request)

    if action == "register":
        return await handle_register(params, service)
    if action in ("send", "message"):
        return await handle_send(params, service)

    raise ValidationError("Invalid action")
