"""Shared-secret check for the registration pathway."""
import hmac
import logging
from typing import Mapping, Optional

from ..exceptions import AuthError

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Secret-Key"
SECRET_PARAM = "secret"


class RequestGate:
    """Validates the shared secret presented by registration callers."""

    def __init__(self, secret: str):
        self._secret = secret

    @staticmethod
    def extract_secret(
        headers: Mapping[str, str],
        query: Mapping[str, str],
        body: Mapping[str, object],
    ) -> Optional[str]:
        """Pick the presented secret: header first, then query, then body."""
        # Starlette headers are case-insensitive, plain dicts are not
        secret = headers.get(SECRET_HEADER) or headers.get(SECRET_HEADER.lower())
        if not secret:
            secret = query.get(SECRET_PARAM)
        if not secret:
            value = body.get(SECRET_PARAM)
            secret = value if isinstance(value, str) else None
        return secret or None

    def authorize(self, presented_secret: Optional[str]) -> None:
        """Raise AuthError unless the presented secret matches exactly."""
        if not presented_secret or not self._secret:
            logger.warning("Registration rejected - missing secret key")
            raise AuthError("Invalid or missing secret key")

        if not hmac.compare_digest(
            presented_secret.encode("utf-8"), self._secret.encode("utf-8")
        ):
            logger.warning("Registration rejected - invalid secret key")
            raise AuthError("Invalid or missing secret key")
