"""Base model with common fields for all entities."""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Uuid

from billpay.database import Base as DeclarativeBase


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base model class with common fields."""

    __abstract__ = True

    id = Column(Uuid, primary_key=True, default=uuid4, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
