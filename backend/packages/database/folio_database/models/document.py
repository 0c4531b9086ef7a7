"""
Document model definition.

This module defines the Document model for storing block-structured
documents published under a slug.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid


class DocumentVisibility(str, Enum):
    """Document visibility enumeration."""

    DRAFT = "draft"
    PUBLISHED = "published"


class Document(Base, TimestampMixin):
    """
    Block-structured document.

    The ``content`` column holds the raw block JSON exactly as saved by
    the editor. It is never rewritten by the translation pipeline.

    Attributes:
        id: Unique document identifier (UUID).
        user_id: Owning user.
        slug: Public URL slug (unique).
        title: Document title.
        subtitle: Optional subtitle.
        description: Optional short description.
        cover_image: Optional cover image URL.
        content: Raw block JSON.
        visibility: Draft or published.
        view_count: Public view counter.
    """

    __tablename__ = "documents"

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Foreign key
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Document metadata
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    cover_image: Mapped[str | None] = mapped_column(Text)

    # Body
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Publishing
    visibility: Mapped[str] = mapped_column(
        String(10), default=DocumentVisibility.DRAFT.value, nullable=False
    )
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="documents")
    translations = relationship(
        "DocumentTranslation", back_populates="document", passive_deletes=True
    )

    @property
    def is_published(self) -> bool:
        """Whether the document is publicly visible."""
        return self.visibility == DocumentVisibility.PUBLISHED.value
