"""
Document service.

Read access to stored documents for the publishing pipeline.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folio_database.models import Document


class DocumentService:
    """Document lookup service."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize document service.

        Args:
            session: Database session.
        """
        self.session = session

    async def get_by_slug(self, slug: str, *, published_only: bool = False) -> Document:
        """
        Get a document by its slug.

        Args:
            slug: Document slug.
            published_only: Treat drafts as missing (public access).

        Returns:
            The document.

        Raises:
            ValueError: If no matching document exists.
        """
        result = await self.session.execute(select(Document).where(Document.slug == slug))
        document = result.scalar_one_or_none()
        # Close the read transaction; sessions are created with expire_on_commit=False
        await self.session.commit()
        if not document or (published_only and not document.is_published):
            raise ValueError(f"Document {slug} not found")
        return document
