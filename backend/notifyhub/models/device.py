"""Device model - maps a sender-facing API key to a push token."""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Device(Base):
    """Registered device for push notifications."""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    push_token = Column(String, unique=True, nullable=False)
    api_key = Column(String, unique=True, nullable=False, index=True)
    device_info = Column(String, nullable=True)
    registered_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Device id={self.id} api_key={self.api_key[:8]}...>"
