"""Device registry - persists devices and resolves API keys to push tokens."""
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Database
from ..exceptions import PersistenceError, ValidationError
from ..models.device import Device, utcnow
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "API-"
API_KEY_BYTES = 12  # 96 bits of entropy

# Attempts at drawing a fresh API key when the random one is already taken
MAX_KEY_ATTEMPTS = 3


def generate_api_key() -> str:
    """Generate a random API key such as ``API-5F1C...``."""
    return API_KEY_PREFIX + secrets.token_hex(API_KEY_BYTES).upper()


@dataclass
class Registration:
    """Outcome of registering a push token."""
    api_key: str
    created: bool


class DeviceRegistry:
    """Registry of devices backed by the application database.

    Uniqueness of push tokens and API keys is enforced by the table
    constraints. Registration relies on an insert that does nothing on a
    push token conflict, so two concurrent registrations of one token
    always end up sharing a single row and API key.
    """

    def __init__(self, database: Database, default_device_info: str = "Unknown device"):
        self._database = database
        self._default_device_info = default_device_info

    async def register_or_get(self, push_token: str, device_info: Optional[str] = None) -> Registration:
        """Return the API key for a push token, registering it if new.

        Raises:
            ValidationError: If push_token is empty
            PersistenceError: If the store cannot be written
        """
        if not push_token or not push_token.strip():
            raise ValidationError("FCM token is required")

        device_info = device_info or self._default_device_info

        for attempt in range(MAX_KEY_ATTEMPTS):
            api_key = generate_api_key()
            try:
                created = await retry_on_lock(
                    lambda: self._insert_and_commit(push_token, api_key, device_info)
                )
                registration = (
                    Registration(api_key=api_key, created=True)
                    if created
                    else await self._existing_registration(push_token)
                )
            except IntegrityError:
                # Only an API key collision gets here; push token conflicts are absorbed
                logger.warning(f"API key collision, retrying (attempt {attempt + 1}/{MAX_KEY_ATTEMPTS})")
                continue
            except SQLAlchemyError as e:
                logger.error(f"Failed to register device {push_token[:16]}...: {e}")
                raise PersistenceError("Failed to register device") from e

            if registration.created:
                logger.info(f"New device registered: {push_token[:16]}...")
            else:
                logger.info(f"Device already registered: {push_token[:16]}...")
            return registration

        raise PersistenceError("Failed to register device")

    async def _insert_and_commit(self, push_token: str, api_key: str, device_info: str) -> bool:
        async with self._database.session() as session:
            created = await self._insert(session, push_token, api_key, device_info)
            await session.commit()
            return created

    async def _existing_registration(self, push_token: str) -> Registration:
        async with self._database.session() as session:
            existing = await session.scalar(
                select(Device.api_key).where(Device.push_token == push_token)
            )
        if existing is None:
            raise PersistenceError("Failed to register device")
        return Registration(api_key=existing, created=False)

    async def _insert(self, session: AsyncSession, push_token: str, api_key: str, device_info: str) -> bool:
        """Insert a device row unless the push token already exists.

        Returns True when a row was written.
        """
        values = {
            "push_token": push_token,
            "api_key": api_key,
            "device_info": device_info,
        }
        dialect = self._database.dialect

        if dialect in ("sqlite", "postgresql"):
            insert = sqlite_insert if dialect == "sqlite" else pg_insert
            stmt = (
                insert(Device)
                .values(**values)
                .on_conflict_do_nothing(index_elements=[Device.push_token])
            )
            result = await session.execute(stmt)
            return result.rowcount == 1

        # Other backends: rely on the unique constraint and inspect the conflict
        try:
            async with session.begin_nested():
                session.add(Device(**values))
            return True
        except IntegrityError:
            taken = await session.scalar(
                select(Device.id).where(Device.push_token == push_token)
            )
            if taken is None:
                raise
            return False

    async def find_by_api_key(self, api_key: str) -> Optional[Device]:
        """Look up a device by its API key."""
        if not api_key:
            return None
        try:
            async with self._database.session() as session:
                return await session.scalar(
                    select(Device).where(Device.api_key == api_key)
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up API key {api_key[:8]}...: {e}")
            raise PersistenceError("Failed to look up device") from e

    async def update_token(self, api_key: str, new_push_token: str) -> bool:
        """Repoint a device at a new push token, keeping its API key.

        Returns False when no device has the API key.
        """
        if not new_push_token or not new_push_token.strip():
            raise ValidationError("FCM token is required")

        async def _update() -> int:
            async with self._database.session() as session:
                result = await session.execute(
                    update(Device)
                    .where(Device.api_key == api_key)
                    .values(push_token=new_push_token, updated_at=utcnow())
                )
                await session.commit()
                return result.rowcount

        try:
            updated = await retry_on_lock(_update)
        except IntegrityError as e:
            logger.warning(f"Push token {new_push_token[:16]}... already belongs to another device")
            raise PersistenceError("FCM token is already registered to another device") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to update push token for {api_key[:8]}...: {e}")
            raise PersistenceError("Failed to update device") from e

        if updated:
            logger.info(f"Push token updated for {api_key[:8]}...: {new_push_token[:16]}...")
        return updated > 0
