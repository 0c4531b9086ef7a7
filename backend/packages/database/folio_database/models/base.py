"""
Base model definitions.

This module provides the declarative base class and shared mixins
used by all Folio models.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def generate_uuid() -> str:
    """Generate a new UUID string for primary keys."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base class for all models."""


class TimestampMixin:
    """
    Mixin adding creation and update timestamps.

    Attributes:
        created_at: Row creation timestamp (set by the database).
        updated_at: Last modification timestamp (refreshed on update).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
