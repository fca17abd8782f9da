"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import pytest

from email_thread_engine.config import Settings
from email_thread_engine.emails import EmailService
from email_thread_engine.models import Email, EmailDirection
from email_thread_engine.store import EmailRepository
from email_thread_engine.threads import ThreadService


@pytest.fixture
def mock_settings(tmp_path) -> Settings:
    """Provide settings pointing at a throwaway database."""
    return Settings(
        db_path=tmp_path / "emails.sqlite3",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def repo(mock_settings: Settings) -> EmailRepository:
    """Provide an initialized repository on an empty store."""
    repository = EmailRepository(mock_settings.db_path)
    repository.initialize()
    return repository


@pytest.fixture
def thread_service(repo: EmailRepository) -> ThreadService:
    return ThreadService(repo)


@pytest.fixture
def email_service(
    repo: EmailRepository, thread_service: ThreadService, mock_settings: Settings
) -> EmailService:
    return EmailService(repository=repo, thread_service=thread_service, settings=mock_settings)


@pytest.fixture
def make_email(repo: EmailRepository) -> Callable[..., Email]:
    """Insert a row with sensible defaults; keyword arguments override them."""

    counter = {"n": 0}

    def _make(
        thread_id: str = "thread-1",
        *,
        direction: EmailDirection = EmailDirection.INCOMING,
        deleted: bool = False,
        created_at: datetime | None = None,
        **fields,
    ) -> Email:
        counter["n"] += 1
        values = {
            "subject": f"Subject {counter['n']}",
            "from_address": "alice@example.com",
            "to_address": "bob@example.com",
            "content": f"Body {counter['n']}",
        }
        values.update(fields)
        email = repo.create(
            thread_id=thread_id,
            direction=direction,
            created_at=created_at,
            **values,
        )
        if deleted:
            repo.soft_delete(email.id)
            email = repo.find_by_id(email.id, include_deleted=True)
        return email

    return _make


@pytest.fixture
def sample_compose_data() -> dict:
    """Provide a compose payload as the UI would submit it."""
    return {
        "from": "me@example.com",
        "to": "you@example.com",
        "subject": "Hello",
        "content": "World",
        "cc": "",
        "bcc": "",
    }
