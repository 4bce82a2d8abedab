"""Registration and send pathways."""
import logging
from dataclasses import dataclass
from typing import Optional

from ..exceptions import AuthError, NotFoundError, ValidationError
from .device_registry import DeviceRegistry, Registration
from .push_sender import PushSenderService, SendResult
from .request_gate import RequestGate

logger = logging.getLogger(__name__)


@dataclass
class SendRequest:
    """Parameters of a send request as collected from the caller."""
    api_key: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None

    def validate(self):
        """Check required fields in the order callers are told about them."""
        if not self.api_key:
            raise ValidationError("API key (k) is required")
        if not self.title:
            raise ValidationError("Title (t) is required")
        if not self.content:
            raise ValidationError("Content (c) is required")


class NotificationService:
    """Wires the gate, registry and sender into the two public pathways."""

    def __init__(self, gate: RequestGate, registry: DeviceRegistry, sender: PushSenderService):
        self.gate = gate
        self.registry = registry
        self.sender = sender

    async def register(
        self,
        presented_secret: Optional[str],
        push_token: Optional[str],
        device_info: Optional[str] = None,
    ) -> Registration:
        self.gate.authorize(presented_secret)
        return await self.registry.register_or_get(push_token or "", device_info)

    async def send(self, request: SendRequest) -> SendResult:
        """Resolve the API key and deliver the notification.

        Every failure is terminal: an unknown key stops before any token
        exchange, and a credential failure stops before dispatch.
        """
        request.validate()

        device = await self.registry.find_by_api_key(request.api_key)
        if device is None:
            logger.warning(f"Send rejected - unknown API key {request.api_key[:8]}...")
            raise AuthError("Invalid API key")

        data = {"url": request.url} if request.url else {}
        return await self.sender.send_notification(
            push_token=device.push_token,
            title=request.title,
            body=request.content,
            data=data,
        )

    async def update_token(
        self,
        presented_secret: Optional[str],
        api_key: Optional[str],
        push_token: Optional[str],
    ) -> None:
        self.gate.authorize(presented_secret)
        if not api_key:
            raise ValidationError("API key (k) is required")
        if not await self.registry.update_token(api_key, push_token or ""):
            raise NotFoundError("Device not found")
