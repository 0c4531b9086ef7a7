"""
Database models package.

This module exports all SQLAlchemy models for the Folio application.
"""

from .base import Base, TimestampMixin
from .document import Document, DocumentVisibility
from .document_translation import DocumentTranslation
from .user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "Document",
    "DocumentVisibility",
    # Translation cache
    "DocumentTranslation",
]
