"""Thread resolution.

A thread is every row sharing a ``thread_id``. Deletion happens per message,
but the trash is shown thread by thread, so this service decides which rows
of a partially deleted thread are visible from where.
"""

from __future__ import annotations

import structlog

from email_thread_engine.exceptions import NotFoundError
from email_thread_engine.models import Email, EmailDirection
from email_thread_engine.store import DEFAULT_PAGE_SIZE, EmailRepository

logger = structlog.get_logger()


class ThreadService:
    """Thread-level views and mutations on top of :class:`EmailRepository`."""

    def __init__(self, repository: EmailRepository) -> None:
        self.repository = repository

    def get_threaded_emails(
        self,
        direction: EmailDirection | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: int | None = None,
    ) -> list[Email]:
        """Latest non-deleted message of each thread, newest thread first."""

        return self.repository.latest_per_thread(direction, limit=limit, cursor=cursor)

    def get_emails_by_thread_id(
        self,
        thread_id: str,
        include_deleted: bool = False,
        only_deleted: bool = False,
    ) -> list[Email]:
        return self.repository.find_by_thread_id(
            thread_id, include_deleted=include_deleted, only_deleted=only_deleted
        )

    def get_thread_emails_for_deleted_email(self, thread_id: str) -> list[Email]:
        """Thread rows to show next to a deleted message.

        A fully deleted thread is shown whole. A partially deleted one shows
        only its deleted rows, so live messages never appear in the trash.
        """

        all_emails = self.repository.find_by_thread_id(thread_id, include_deleted=True)
        if all(email.is_deleted for email in all_emails):
            return all_emails
        return [email for email in all_emails if email.is_deleted]

    def mark_thread_read(self, thread_id: str) -> int:
        updated = self.repository.mark_thread_read(thread_id)
        logger.info("thread_marked_read", thread_id=thread_id, updated=updated)
        return updated

    def delete_thread(self, thread_id: str) -> int:
        """Soft-delete every active message of a thread.

        Deleting a thread that is already fully deleted succeeds and changes
        nothing.

        Returns:
            Number of rows that were newly marked deleted.

        Raises:
            NotFoundError: If the thread has no rows at all.
        """

        active = self.repository.find_by_thread_id(thread_id)
        if not active:
            if not self.repository.find_by_thread_id(thread_id, include_deleted=True):
                raise NotFoundError("Thread not found")
            logger.info("thread_already_deleted", thread_id=thread_id)
            return 0

        deleted = self.repository.soft_delete_by_thread(thread_id)
        logger.info("thread_deleted", thread_id=thread_id, deleted=deleted)
        return deleted
