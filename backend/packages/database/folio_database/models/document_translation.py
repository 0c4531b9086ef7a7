"""
Document translation model definition.

This module defines the DocumentTranslation model, the persistent cache
of rendered and translated document HTML.
"""

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid


class DocumentTranslation(Base, TimestampMixin):
    """
    Cached translated HTML for a document slug and target locale.

    One row per (slug, locale). The row is stale when the fingerprint of
    the document's current content differs from ``content_hash``.

    Attributes:
        id: Unique row identifier (UUID).
        document_id: Document the HTML was rendered from.
        slug: Document slug at translation time.
        locale: Target locale code (e.g. "es", "zh-CN").
        source_locale: Locale the document was translated from.
        html: Rendered and translated HTML.
        content_hash: Fingerprint of the source content used for ``html``.
    """

    __tablename__ = "document_translations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    document_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    locale: Mapped[str] = mapped_column(String(20), nullable=False)
    source_locale: Mapped[str] = mapped_column(String(20), nullable=False)
    html: Mapped[str] = mapped_column(Text, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    # Relationships
    document = relationship("Document", back_populates="translations")

    # Constraints
    __table_args__ = (
        UniqueConstraint("slug", "locale", name="uq_document_translation_slug_locale"),
    )
