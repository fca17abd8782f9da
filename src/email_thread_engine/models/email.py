"""Stored email message model.

A message is the only persisted entity. Threads are derived by grouping
messages that share ``thread_id``; they have no row of their own.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EmailDirection(str, Enum):
    """Whether a message was received or sent."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


class Email(BaseModel):
    """A single stored email row."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(description="Store-assigned id; strictly increasing with insertion")
    thread_id: str = Field(description="Conversation id shared by every message in a thread")

    subject: str = Field(description="Subject line")
    # Serialized as "from"/"to" to match the wire shape the UI expects.
    from_address: str = Field(alias="from", description="Sender address")
    to_address: str = Field(alias="to", description="Recipient address")
    cc: str | None = Field(default=None, description="Cc address")
    bcc: str | None = Field(default=None, description="Bcc address")
    content: str | None = Field(default=None, description="Plain text body")

    direction: EmailDirection = Field(
        default=EmailDirection.INCOMING, description="Received or sent"
    )
    is_read: bool = Field(default=False, description="Whether the message has been read")
    is_important: bool = Field(default=False, description="Whether the message is flagged")
    is_deleted: bool = Field(default=False, description="Soft-delete marker")

    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last mutation timestamp (UTC)")


class EmailWithThread(BaseModel):
    """Detail view: one message plus the thread rows visible alongside it."""

    email: Email
    thread: list[Email] = Field(default_factory=list)


class EmailPage(BaseModel):
    """One page of a listing.

    ``next_cursor`` is the id to pass as ``cursor`` for the following page,
    or ``None`` when the page was shorter than the limit.
    """

    data: list[Email] = Field(default_factory=list)
    next_cursor: int | None = None


class EmailCounts(BaseModel):
    """Badge counts for the sidebar."""

    unread_inbox: int = Field(ge=0)
    important: int = Field(ge=0)
