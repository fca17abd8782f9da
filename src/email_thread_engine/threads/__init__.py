"""Conversation threads derived from email rows."""

from .service import ThreadService

__all__ = ["ThreadService"]
