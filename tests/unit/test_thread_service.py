"""Unit tests for thread resolution."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from email_thread_engine.exceptions import NotFoundError
from email_thread_engine.models import EmailDirection
from email_thread_engine.store import EmailRepository
from email_thread_engine.threads import ThreadService


class TestThreadedEmails:
    def test_returns_latest_per_thread(self, thread_service: ThreadService, make_email) -> None:
        make_email(thread_id="a")
        latest_a = make_email(thread_id="a")
        latest_b = make_email(thread_id="b")

        result = thread_service.get_threaded_emails(EmailDirection.INCOMING)

        assert [e.id for e in result] == [latest_b.id, latest_a.id]

    def test_passes_pagination_to_repository(self) -> None:
        repository = MagicMock(spec=EmailRepository)
        repository.latest_per_thread.return_value = []
        service = ThreadService(repository)

        service.get_threaded_emails(EmailDirection.OUTGOING, limit=10, cursor=100)

        repository.latest_per_thread.assert_called_once_with(
            EmailDirection.OUTGOING, limit=10, cursor=100
        )


class TestDeletedEmailThread:
    def test_partially_deleted_thread_shows_only_deleted(
        self, thread_service: ThreadService, make_email
    ) -> None:
        a = make_email(thread_id="t", deleted=True)
        make_email(thread_id="t")

        result = thread_service.get_thread_emails_for_deleted_email("t")

        assert [e.id for e in result] == [a.id]

    def test_fully_deleted_thread_shows_everything(
        self, thread_service: ThreadService, make_email
    ) -> None:
        a = make_email(thread_id="t", deleted=True)
        b = make_email(thread_id="t", deleted=True)

        result = thread_service.get_thread_emails_for_deleted_email("t")

        assert [e.id for e in result] == [a.id, b.id]


class TestDeleteThread:
    def test_deletes_every_active_row(
        self, thread_service: ThreadService, repo: EmailRepository, make_email
    ) -> None:
        make_email(thread_id="t")
        make_email(thread_id="t")
        make_email(thread_id="t", deleted=True)

        assert thread_service.delete_thread("t") == 2
        assert repo.find_by_thread_id("t") == []
        assert len(repo.find_by_thread_id("t", only_deleted=True)) == 3

    def test_is_idempotent(self, thread_service: ThreadService, repo: EmailRepository, make_email) -> None:
        make_email(thread_id="t")
        make_email(thread_id="t")

        thread_service.delete_thread("t")
        state_after_first = repo.find_by_thread_id("t", include_deleted=True)
        assert thread_service.delete_thread("t") == 0

        assert repo.find_by_thread_id("t", include_deleted=True) == state_after_first

    def test_already_deleted_thread_is_not_rewritten(self) -> None:
        repository = MagicMock(spec=EmailRepository)
        repository.find_by_thread_id.side_effect = [[], [MagicMock(is_deleted=True)]]
        service = ThreadService(repository)

        service.delete_thread("t")

        repository.soft_delete_by_thread.assert_not_called()

    def test_unknown_thread_raises_not_found(self, thread_service: ThreadService) -> None:
        with pytest.raises(NotFoundError, match="Thread not found"):
            thread_service.delete_thread("missing")


class TestMarkThreadRead:
    def test_leaves_deleted_rows_untouched(
        self, thread_service: ThreadService, repo: EmailRepository, make_email
    ) -> None:
        a = make_email(thread_id="t")
        b = make_email(thread_id="t", deleted=True)

        thread_service.mark_thread_read("t")
        thread_service.mark_thread_read("t")

        assert repo.find_by_id(a.id).is_read is True
        assert repo.find_by_id(b.id, include_deleted=True).is_read is False
