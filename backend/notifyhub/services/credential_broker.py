"""Credential broker - exchanges a service account for a bearer token.

The service account's private key signs a short-lived JWT assertion which
the provider's OAuth2 token endpoint trades for a bearer token. Tokens are
cached per service account until shortly before they expire.
"""
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..exceptions import CredentialError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME = 3600  # seconds


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class ServiceAccount:
    """Service credential material read from the provider's JSON file."""
    client_email: str
    private_key: str
    project_id: str
    token_uri: str = DEFAULT_TOKEN_URI
    private_key_id: Optional[str] = None

    @classmethod
    def from_file(cls, path: str) -> "ServiceAccount":
        """Load a service account file.

        Raises:
            CredentialError: If the file is missing or lacks required fields
        """
        file_path = Path(path)
        if not file_path.is_file():
            logger.error(f"Service account file not found: {path}")
            raise CredentialError("FCM service account not configured")

        try:
            data = json.loads(file_path.read_text())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read service account file {path}: {e}")
            raise CredentialError("Invalid service account configuration") from e

        if not isinstance(data, dict):
            raise CredentialError("Invalid service account configuration")

        required = ("client_email", "private_key", "project_id")
        invalid = [k for k in required if not data.get(k) or not isinstance(data[k], str)]
        if invalid:
            logger.error(f"Service account file has missing or invalid fields: {', '.join(invalid)}")
            raise CredentialError("Invalid service account configuration")

        return cls(
            client_email=data["client_email"],
            private_key=data["private_key"],
            project_id=data["project_id"],
            token_uri=_optional_str(data, "token_uri") or DEFAULT_TOKEN_URI,
            private_key_id=_optional_str(data, "private_key_id"),
        )


@dataclass(frozen=True)
class BearerCredential:
    """Short-lived bearer token, the epoch second it expires at and its lifetime."""
    token: str
    expires_at: float
    lifetime: float = ASSERTION_LIFETIME

    def is_fresh(self, now: float, margin: float) -> bool:
        # Short-lived tokens are refreshed at half-life at the latest
        return now < self.expires_at - min(margin, self.lifetime / 2)


def load_private_key(pem: str) -> RSAPrivateKey:
    """Parse a PEM-encoded RSA private key."""
    try:
        key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CredentialError("Invalid service account private key") from e
    if not isinstance(key, RSAPrivateKey):
        raise CredentialError("Service account private key is not an RSA key")
    return key


def build_assertion(account: ServiceAccount, scope: str, issued_at: int) -> str:
    """Build the RS256-signed JWT assertion for a service account."""
    claims = {
        "iss": account.client_email,
        "scope": scope,
        "aud": account.token_uri,
        "iat": issued_at,
        "exp": issued_at + ASSERTION_LIFETIME,
    }
    key = load_private_key(account.private_key)
    try:
        return jwt.encode(claims, key, algorithm="RS256", headers={"typ": "JWT"})
    except (ValueError, TypeError, jwt.PyJWTError) as e:
        raise CredentialError("Failed to sign assertion") from e


class CredentialBroker:
    """Hands out bearer tokens for the push provider.

    One token is cached per service account identity. A lock makes sure
    concurrent callers wait for a single exchange instead of each
    starting their own.
    """

    def __init__(
        self,
        service_account_path: str,
        http_client: httpx.AsyncClient,
        scope: str,
        refresh_margin: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._service_account_path = service_account_path
        self._http = http_client
        self._scope = scope
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._cache: Dict[str, BearerCredential] = {}
        self._account: Optional[ServiceAccount] = None
        self._lock = asyncio.Lock()

    def service_account(self) -> ServiceAccount:
        """Return the service account, reading the file on first use."""
        if self._account is None:
            self._account = ServiceAccount.from_file(self._service_account_path)
        return self._account

    async def get_token(self, account: Optional[ServiceAccount] = None) -> str:
        """Return a bearer token, exchanging a new assertion when needed.

        Raises:
            CredentialError: If no token could be obtained
        """
        if account is None:
            account = self.service_account()
        cache_key = f"{account.client_email}:{account.private_key_id or ''}"

        cached = self._cache.get(cache_key)
        if cached and cached.is_fresh(self._clock(), self._refresh_margin):
            return cached.token

        async with self._lock:
            # Another request may have refreshed while we waited
            cached = self._cache.get(cache_key)
            if cached and cached.is_fresh(self._clock(), self._refresh_margin):
                return cached.token

            credential = await self._exchange(account)
            self._cache[cache_key] = credential
            return credential.token

    def invalidate(self) -> None:
        """Drop cached tokens and re-read the service account on next use."""
        self._cache.clear()
        self._account = None

    async def _exchange(self, account: ServiceAccount) -> BearerCredential:
        issued_at = int(self._clock())
        assertion = build_assertion(account, self._scope, issued_at)

        try:
            response = await self._http.post(
                account.token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
            )
        except httpx.HTTPError as e:
            logger.error(f"Token exchange failed: {e}")
            raise CredentialError("Failed to obtain access token") from e

        if response.status_code != 200:
            logger.error(f"Token endpoint returned {response.status_code}: {response.text[:200]}")
            raise CredentialError("Failed to obtain access token")

        try:
            payload = response.json()
            token = payload["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected token endpoint response: {e}")
            raise CredentialError("Failed to obtain access token") from e
        if not token:
            raise CredentialError("Failed to obtain access token")

        expires_in = payload.get("expires_in", ASSERTION_LIFETIME)
        try:
            expires_in = float(expires_in)
        except (TypeError, ValueError):
            expires_in = ASSERTION_LIFETIME
        if expires_in <= 0:
            expires_in = ASSERTION_LIFETIME

        logger.info(f"Obtained access token for {account.client_email} (expires in {int(expires_in)}s)")
        return BearerCredential(token=token, expires_at=issued_at + expires_in, lifetime=expires_in)
