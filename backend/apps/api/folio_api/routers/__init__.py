"""
API router modules.

This package contains all API route handlers organized by domain.
"""

from . import documents

__all__ = [
    "documents",
]
