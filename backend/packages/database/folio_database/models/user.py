"""
User model definition.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid


class User(Base, TimestampMixin):
    """
    Platform user.

    Users own documents. Credentials and sessions are managed outside
    this package.

    Attributes:
        id: Unique user identifier (UUID).
        name: Display name.
        email: Login email (unique).
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    # Relationships
    documents = relationship("Document", back_populates="owner", passive_deletes=True)
