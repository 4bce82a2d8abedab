"""Push notification sender service using the FCM HTTP v1 API."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from ..exceptions import DispatchError, TransportError, ValidationError
from .credential_broker import CredentialBroker

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Outcome of a delivered push notification."""
    success: bool
    message_id: Optional[str] = None


def build_message(
    push_token: str,
    title: str,
    body: str,
    data: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the FCM message envelope for a single device."""
    message: Dict[str, Any] = {
        "token": push_token,
        "notification": {"title": title, "body": body},
    }
    # FCM only accepts string values in the data block
    if data:
        message["data"] = {str(key): str(value) for key, value in data.items()}
    return {"message": message}


def error_message(response: httpx.Response) -> str:
    """Extract the provider's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return DispatchError.detail
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return DispatchError.detail


class PushSenderService:
    """Service for sending push notifications via FCM."""

    def __init__(
        self,
        broker: CredentialBroker,
        http_client: httpx.AsyncClient,
        api_base: str = "https://fcm.googleapis.com/v1",
    ):
        self._broker = broker
        self._http = http_client
        self._api_base = api_base.rstrip("/")

    def send_url(self, project_id: str) -> str:
        return f"{self._api_base}/projects/{project_id}/messages:send"

    async def send_notification(
        self,
        push_token: str,
        title: str,
        body: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> SendResult:
        """Send a push notification to a single device.

        Args:
            push_token: The FCM registration token
            title: Notification title
            body: Notification body text
            data: Additional data payload, values are sent as strings

        Returns:
            SendResult carrying the provider-assigned message name

        Raises:
            ValidationError: If title or body is empty
            CredentialError: If no bearer token could be obtained
            DispatchError: If the provider rejects the message
            TransportError: If the provider could not be reached
        """
        if not title:
            raise ValidationError("Title (t) is required")
        if not body:
            raise ValidationError("Content (c) is required")

        account = self._broker.service_account()
        access_token = await self._broker.get_token(account)

        try:
            response = await self._http.post(
                self.send_url(account.project_id),
                json=build_message(push_token, title, body, data),
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to send push notification: {e}")
            raise TransportError(f"Transport error: {e}") from e

        if 200 <= response.status_code < 300:
            try:
                message_id = response.json().get("name")
            except (ValueError, AttributeError):
                message_id = None
            logger.info(f"Push notification sent to {push_token[:16]}...")
            return SendResult(success=True, message_id=message_id)

        if response.status_code == 401:
            # Token was revoked early; make the next send exchange a new one
            self._broker.invalidate()

        message = error_message(response)
        logger.warning(
            f"Push notification failed: {response.status_code} {message} "
            f"(token: {push_token[:16]}...)"
        )
        raise DispatchError(message)
