"""
Folio Database Package.

This package contains SQLAlchemy models and database session
management for the Folio application.
"""

__version__ = "0.1.0"

from .models import Base
from .session import get_session, get_session_context, init_database

__all__ = ["Base", "get_session", "get_session_context", "init_database"]
