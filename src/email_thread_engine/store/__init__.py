"""Message store.

This package contains the SQLite schema for email rows and the repository
that implements every listing, search and mutation query against it.
"""

from .repository import DEFAULT_PAGE_SIZE, EmailRepository

__all__ = ["DEFAULT_PAGE_SIZE", "EmailRepository"]
