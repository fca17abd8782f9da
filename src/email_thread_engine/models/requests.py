"""Request DTOs accepted by the email service.

These models validate caller input before anything touches the store.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from email_thread_engine.models.email import EmailDirection


class CreateEmailRequest(BaseModel):
    """Fields needed to compose a new message or a reply."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    subject: str = Field(min_length=1, description="Subject line")
    from_address: EmailStr = Field(alias="from", description="Sender address")
    to_address: EmailStr = Field(alias="to", description="Recipient address")
    content: str = Field(min_length=1, description="Plain text body")
    cc: EmailStr | None = Field(default=None, description="Cc address")
    bcc: EmailStr | None = Field(default=None, description="Bcc address")

    thread_id: UUID | None = Field(
        default=None, description="Existing thread to append to"
    )
    in_reply_to: int | None = Field(
        default=None, gt=0, description="Id of the message being replied to"
    )
    direction: EmailDirection = Field(
        default=EmailDirection.OUTGOING, description="Received or sent"
    )

    @field_validator("cc", "bcc", mode="before")
    @classmethod
    def _blank_to_none(cls, v: object) -> object:
        # The compose form submits empty strings for untouched fields.
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _single_thread_source(self) -> "CreateEmailRequest":
        if self.thread_id is not None and self.in_reply_to is not None:
            raise ValueError("Provide either thread_id or in_reply_to, not both")
        return self


class UpdateEmailRequest(BaseModel):
    """Flag changes for a single message."""

    is_read: bool | None = None
    mark_thread_as_read: bool | None = None
    is_important: bool | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.is_read is None
            and self.mark_thread_as_read is None
            and self.is_important is None
        )


class EmailListFilters(BaseModel):
    """Optional listing filters.

    The filters are not combined freely; see
    :func:`email_thread_engine.query.planner.resolve_query` for the order in
    which they take effect.
    """

    search: str | None = None
    threaded: bool | None = None
    direction: EmailDirection | None = None
    important: bool | None = None
    deleted: bool | None = None
    cursor: int | None = Field(default=None, gt=0)
    limit: int | None = Field(default=None, gt=0)
