"""Email service.

This is the entry point the presentation layer calls: listings, the detail
view, composing, flag changes, deletion and badge counts. Request payloads
may be passed either as the request models or as plain mappings, which are
validated here.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, TypeVar

import pydantic
import structlog

from email_thread_engine.config import Settings, get_settings
from email_thread_engine.exceptions import InvalidOperationError, NotFoundError, ValidationError
from email_thread_engine.models import (
    CreateEmailRequest,
    Email,
    EmailCounts,
    EmailDirection,
    EmailListFilters,
    EmailPage,
    EmailWithThread,
    UpdateEmailRequest,
)
from email_thread_engine.query import (
    DefaultQuery,
    DeletedQuery,
    DirectionQuery,
    ImportantQuery,
    ResolvedQuery,
    SearchQuery,
    ThreadedQuery,
    resolve_query,
)
from email_thread_engine.store import EmailRepository
from email_thread_engine.threads import ThreadService

logger = structlog.get_logger()

M = TypeVar("M", bound=pydantic.BaseModel)


def _parse(model: type[M], data: M | Mapping[str, Any]) -> M:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        details = ", ".join(err["msg"] for err in e.errors())
        raise ValidationError(f"Validation Error: {details}") from e


class EmailService:
    """Message-level operations and listing for the mail client."""

    def __init__(
        self,
        repository: EmailRepository | None = None,
        thread_service: ThreadService | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Email repository. If None, one is created on the
                configured database path and initialized.
            thread_service: Thread service. If None, one is created on top
                of ``repository``.
            settings: Application settings. If None, uses default settings.
        """
        self.settings = settings or get_settings()
        if repository is None:
            repository = EmailRepository(self.settings.db_path)
            repository.initialize()
        self.repository = repository
        self.thread_service = thread_service or ThreadService(repository)

    # Listing ----------------------------------------------------------------

    def list_emails(self, filters: EmailListFilters | Mapping[str, Any] | None = None) -> EmailPage:
        """Run the single query path selected for ``filters``.

        Raises:
            InvalidOperationError: Threaded listing requested without a direction.
            ValidationError: Malformed filters or a limit above the maximum.
        """

        parsed = _parse(EmailListFilters, filters or {})
        query = resolve_query(
            parsed,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )
        emails = self._execute(query)

        next_cursor = None
        limit = getattr(query, "limit", None)
        if limit is not None and emails and len(emails) == limit:
            next_cursor = emails[-1].id

        logger.info("emails_listed", kind=query.kind, count=len(emails), next_cursor=next_cursor)
        return EmailPage(data=emails, next_cursor=next_cursor)

    def _execute(self, query: ResolvedQuery) -> list[Email]:
        if isinstance(query, SearchQuery):
            return self.repository.search(
                query.text,
                limit=query.limit,
                cursor=query.cursor,
                direction=query.direction,
                important=query.important,
                deleted=query.deleted,
            )
        if isinstance(query, ThreadedQuery):
            return self.thread_service.get_threaded_emails(
                query.direction, limit=query.limit, cursor=query.cursor
            )
        if isinstance(query, DirectionQuery):
            return self.repository.find_by_direction(
                query.direction, limit=query.limit, cursor=query.cursor
            )
        if isinstance(query, ImportantQuery):
            return self.repository.find_important(limit=query.limit, cursor=query.cursor)
        if isinstance(query, DeletedQuery):
            return self.repository.find_deleted(limit=query.limit, cursor=query.cursor)
        if isinstance(query, DefaultQuery):
            return self.repository.find_all()
        raise TypeError(f"Unhandled query type: {type(query).__name__}")

    # Detail -----------------------------------------------------------------

    def get_email_by_id(self, email_id: int) -> Email:
        email = self.repository.find_by_id(email_id)
        if email is None:
            raise NotFoundError("Email not found")
        return email

    def get_email_with_thread(self, email_id: int) -> EmailWithThread:
        """Load a message and the thread rows shown with it.

        A deleted message is opened from the trash, so its thread follows the
        trash visibility rule; an active message shows its active thread.
        """

        email = self.repository.find_by_id(email_id, include_deleted=True)
        if email is None:
            raise NotFoundError("Email not found")

        if email.is_deleted:
            thread = self.thread_service.get_thread_emails_for_deleted_email(email.thread_id)
        else:
            thread = self.thread_service.get_emails_by_thread_id(email.thread_id)

        return EmailWithThread(email=email, thread=thread)

    # Mutations --------------------------------------------------------------

    def create_email(self, data: CreateEmailRequest | Mapping[str, Any]) -> Email:
        """Store a newly composed message.

        Replies reuse the thread of the message named by ``in_reply_to``;
        otherwise an explicit ``thread_id`` is used, or a new thread starts.
        Outgoing messages are stored as already read.

        Raises:
            ValidationError: Invalid or missing fields.
            NotFoundError: ``in_reply_to`` names a message that does not exist.
        """

        request = _parse(CreateEmailRequest, data)

        if request.in_reply_to is not None:
            parent = self.repository.find_by_id(request.in_reply_to, include_deleted=True)
            if parent is None:
                raise NotFoundError("Email not found")
            thread_id = parent.thread_id
        elif request.thread_id is not None:
            thread_id = str(request.thread_id)
        else:
            thread_id = str(uuid.uuid4())

        email = self.repository.create(
            thread_id=thread_id,
            subject=request.subject,
            from_address=str(request.from_address),
            to_address=str(request.to_address),
            content=request.content,
            cc=str(request.cc) if request.cc else None,
            bcc=str(request.bcc) if request.bcc else None,
            direction=request.direction,
            is_read=request.direction is EmailDirection.OUTGOING,
        )
        logger.info(
            "email_created",
            email_id=email.id,
            thread_id=email.thread_id,
            direction=email.direction.value,
        )
        return email

    def update_email(self, email_id: int, data: UpdateEmailRequest | Mapping[str, Any]) -> Email:
        """Apply a combined flag update from the detail view."""

        request = _parse(UpdateEmailRequest, data)
        if request.is_empty:
            raise ValidationError("Invalid update data")

        if request.is_read is None and request.mark_thread_as_read is None:
            self._get_mutable(email_id, "Cannot change importance of deleted email")
        else:
            self._get_mutable(email_id, "Cannot update read status of deleted email")

        # An explicit mark_thread_as_read=False with no is_read is a no-op.
        if request.is_read is not None or request.mark_thread_as_read:
            self.update_read_status(
                email_id,
                request.is_read if request.is_read is not None else True,
                mark_thread_as_read=bool(request.mark_thread_as_read),
            )

        if request.is_important is not None:
            self.set_importance(email_id, request.is_important)

        return self._reload(email_id)

    def update_read_status(
        self, email_id: int, is_read: bool, mark_thread_as_read: bool = False
    ) -> Email:
        """Change the read flag of one message, or of its whole thread.

        Raises:
            NotFoundError: No message with this id.
            InvalidOperationError: The message is deleted.
        """

        email = self._get_mutable(email_id, "Cannot update read status of deleted email")

        if mark_thread_as_read and is_read:
            self.thread_service.mark_thread_read(email.thread_id)
            return self._reload(email_id)

        updated = self.repository.update(email_id, is_read=is_read)
        if updated is None:
            # Deleted between the check and the update.
            raise InvalidOperationError("Cannot update read status of deleted email")
        logger.info("email_read_status_updated", email_id=email_id, is_read=is_read)
        return updated

    def set_importance(self, email_id: int, is_important: bool) -> Email:
        """Set the importance flag of a non-deleted message."""

        self._get_mutable(email_id, "Cannot change importance of deleted email")
        updated = self.repository.update(email_id, is_important=is_important)
        if updated is None:
            raise InvalidOperationError("Cannot change importance of deleted email")
        logger.info("email_importance_updated", email_id=email_id, is_important=is_important)
        return updated

    def toggle_importance(self, email_id: int) -> Email:
        email = self._get_mutable(email_id, "Cannot change importance of deleted email")
        return self.set_importance(email_id, not email.is_important)

    def delete_email(self, email_id: int) -> Email:
        """Soft-delete one message. Deleting it again is not an error.

        Raises:
            NotFoundError: No message with this id.
        """

        email = self.repository.find_by_id(email_id, include_deleted=True)
        if email is None:
            raise NotFoundError("Email not found")

        if email.is_deleted:
            logger.info("email_already_deleted", email_id=email_id)
            return email

        self.repository.soft_delete(email_id)
        logger.info("email_deleted", email_id=email_id, thread_id=email.thread_id)
        return self._reload(email_id)

    def delete_thread(self, thread_id: str) -> int:
        return self.thread_service.delete_thread(thread_id)

    def mark_thread_read(self, thread_id: str) -> int:
        return self.thread_service.mark_thread_read(thread_id)

    # Counts -----------------------------------------------------------------

    def get_counts(self) -> EmailCounts:
        return EmailCounts(
            unread_inbox=self.repository.count_unread_inbox(),
            important=self.repository.count_important(),
        )

    # Helpers ----------------------------------------------------------------

    def _get_mutable(self, email_id: int, deleted_message: str) -> Email:
        email = self.repository.find_by_id(email_id, include_deleted=True)
        if email is None:
            raise NotFoundError("Email not found")
        if email.is_deleted:
            raise InvalidOperationError(deleted_message)
        return email

    def _reload(self, email_id: int) -> Email:
        email = self.repository.find_by_id(email_id, include_deleted=True)
        if email is None:
            raise NotFoundError("Email not found")
        return email
