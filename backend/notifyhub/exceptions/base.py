from fastapi import status


class NotifyHubError(Exception):
    """Error that terminates a request with a status code and short message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(NotifyHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class AuthError(NotifyHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized"


class NotFoundError(NotifyHubError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Device not found"


class CredentialError(NotifyHubError):
    """The service credential could not be turned into a bearer token."""

    detail = "Failed to obtain access token"


class DispatchError(NotifyHubError):
    """The push provider rejected the message."""

    detail = "Unknown FCM error"


class TransportError(DispatchError):
    """No response was received from the push provider."""

    detail = "Transport error"


class PersistenceError(NotifyHubError):
    detail = "Failed to register device"
