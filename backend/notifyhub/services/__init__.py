"""Services for registration, credentials and delivery."""
from .request_gate import RequestGate
from .device_registry import DeviceRegistry, Registration
from .credential_broker import CredentialBroker, ServiceAccount, BearerCredential
from .push_sender import PushSenderService, SendResult
from .notifications import NotificationService, SendRequest

__all__ = [
    "RequestGate",
    "DeviceRegistry",
    "Registration",
    "CredentialBroker",
    "ServiceAccount",
    "BearerCredential",
    "PushSenderService",
    "SendResult",
    "NotificationService",
    "SendRequest",
]
