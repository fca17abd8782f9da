"""Data models for Email Thread Engine.

This package contains Pydantic models for stored messages and for the
requests and responses exchanged with the presentation layer.
"""

from email_thread_engine.models.email import (
    Email,
    EmailCounts,
    EmailDirection,
    EmailPage,
    EmailWithThread,
)
from email_thread_engine.models.requests import (
    CreateEmailRequest,
    EmailListFilters,
    UpdateEmailRequest,
)

__all__ = [
    "CreateEmailRequest",
    "Email",
    "EmailCounts",
    "EmailDirection",
    "EmailListFilters",
    "EmailPage",
    "EmailWithThread",
    "UpdateEmailRequest",
]
