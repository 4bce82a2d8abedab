import json
from collections.abc import Iterator

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

from notifyhub.config import Settings
from notifyhub.database import Database
from notifyhub.main import create_app

from .fixtures.provider import FakeProvider

SECRET = "test-secret"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def service_account_file(tmp_path, private_key_pem: str) -> str:
    path = tmp_path / "service-account.json"
    path.write_text(
        json.dumps(
            {
                "type": "service_account",
                "project_id": "p",
                "private_key_id": "key-1",
                "private_key": private_key_pem,
                "client_email": "notifyhub@p.iam.gserviceaccount.com",
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
    )
    return str(path)


@pytest.fixture
def settings(tmp_path, service_account_file: str) -> Settings:
    return Settings(
        secret_key=SECRET,
        data_path=str(tmp_path / "data"),
        fcm_service_account_json=service_account_file,
        expose_token_update=True,
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(settings: Settings, provider: FakeProvider) -> Iterator[TestClient]:
    app = create_app(settings, transport=httpx.MockTransport(provider.handler))
    with TestClient(app) as c:
        yield c


@pytest.fixture
async def database(tmp_path, anyio_backend):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}")
    await db.init()
    yield db
    await db.close()
