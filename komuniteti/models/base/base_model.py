"""
Base model configuration for SQLAlchemy ORM.

Provides abstract base classes with common functionality
for all database models.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

from komuniteti.utils.datetime_utils import utcnow

# Create declarative base
Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid4())


class BaseModel(Base):
    """
    Abstract base model with a string UUID primary key.
    """

    __abstract__ = True

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        nullable=False,
        comment="Primary key (UUID)"
    )

    def __repr__(self) -> str:
        """String representation of model instance."""
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"


class TimestampModel(BaseModel):
    """
    Base model with created_at/updated_at tracking.

    Repositories set both timestamps explicitly so that a freshly
    created row has created_at == updated_at.
    """

    __abstract__ = True

    created_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True,
        comment="Record creation timestamp (UTC)"
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        comment="Record last update timestamp (UTC)"
    )

    def touch(self, now: Optional[datetime] = None) -> None:
        """Bump updated_at, never moving it before created_at."""
        now = now or utcnow()
        if self.created_at is not None and now < self.created_at:
            now = self.created_at
        self.updated_at = now
