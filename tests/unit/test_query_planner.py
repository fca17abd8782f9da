"""Unit tests for listing filter resolution."""

from __future__ import annotations

import itertools

import pytest

from email_thread_engine.exceptions import InvalidOperationError, ValidationError
from email_thread_engine.models import EmailDirection, EmailListFilters
from email_thread_engine.query import (
    DefaultQuery,
    DeletedQuery,
    DirectionQuery,
    Folder,
    ImportantQuery,
    SearchQuery,
    ThreadedQuery,
    filters_for_folder,
    resolve_query,
)

INCOMING = EmailDirection.INCOMING


class TestResolveQuery:
    def test_no_filters_is_default(self) -> None:
        assert resolve_query(EmailListFilters()) == DefaultQuery()

    def test_search_carries_secondary_filters(self) -> None:
        query = resolve_query(
            EmailListFilters(
                search="  invoice ",
                threaded=True,
                direction=INCOMING,
                important=True,
                deleted=True,
                cursor=50,
                limit=5,
            )
        )

        assert query == SearchQuery(
            text="invoice",
            limit=5,
            cursor=50,
            direction=INCOMING,
            important=True,
            deleted=True,
        )

    def test_blank_search_is_ignored(self) -> None:
        query = resolve_query(EmailListFilters(search="   ", important=True))

        assert isinstance(query, ImportantQuery)

    def test_threaded_requires_direction(self) -> None:
        with pytest.raises(InvalidOperationError):
            resolve_query(EmailListFilters(threaded=True))

    def test_threaded_wins_over_flat_modes(self) -> None:
        query = resolve_query(
            EmailListFilters(threaded=True, direction=INCOMING, important=True, deleted=True)
        )

        assert query == ThreadedQuery(direction=INCOMING, limit=20)

    def test_direction_wins_over_important(self) -> None:
        query = resolve_query(EmailListFilters(direction=INCOMING, important=True))

        assert query == DirectionQuery(direction=INCOMING, limit=20)

    def test_important_wins_over_deleted(self) -> None:
        query = resolve_query(EmailListFilters(important=True, deleted=True, cursor=9))

        assert query == ImportantQuery(limit=20, cursor=9)

    def test_deleted(self) -> None:
        assert resolve_query(EmailListFilters(deleted=True)) == DeletedQuery(limit=20)

    def test_false_flags_fall_through(self) -> None:
        query = resolve_query(EmailListFilters(threaded=False, important=False, deleted=False))

        assert query == DefaultQuery()

    def test_default_and_max_limit(self) -> None:
        assert resolve_query(EmailListFilters(deleted=True), default_limit=7).limit == 7

        with pytest.raises(ValidationError):
            resolve_query(EmailListFilters(deleted=True, limit=500), max_limit=100)

    def test_every_combination_resolves_to_exactly_one_path(self) -> None:
        searches = [None, "", "x"]
        flags = [None, False, True]
        directions = [None, INCOMING]

        for search, threaded, direction, important, deleted in itertools.product(
            searches, flags, directions, flags, flags
        ):
            filters = EmailListFilters(
                search=search,
                threaded=threaded,
                direction=direction,
                important=important,
                deleted=deleted,
            )
            if search != "x" and threaded and direction is None:
                with pytest.raises(InvalidOperationError):
                    resolve_query(filters)
                continue

            query = resolve_query(filters)
            if search == "x":
                assert isinstance(query, SearchQuery)
            elif threaded:
                assert isinstance(query, ThreadedQuery)
            elif direction is not None:
                assert isinstance(query, DirectionQuery)
            elif important:
                assert isinstance(query, ImportantQuery)
            elif deleted:
                assert isinstance(query, DeletedQuery)
            else:
                assert isinstance(query, DefaultQuery)


class TestFolders:
    @pytest.mark.parametrize(
        ("folder", "expected"),
        [
            (Folder.INBOX, ThreadedQuery(direction=EmailDirection.INCOMING, limit=20)),
            (Folder.SENT, ThreadedQuery(direction=EmailDirection.OUTGOING, limit=20)),
            (Folder.IMPORTANT, ImportantQuery(limit=20)),
            (Folder.TRASH, DeletedQuery(limit=20)),
        ],
    )
    def test_folder_maps_to_query(self, folder: Folder, expected) -> None:
        assert resolve_query(filters_for_folder(folder)) == expected

    def test_search_within_trash(self) -> None:
        query = resolve_query(filters_for_folder(Folder.TRASH, search="invoice", limit=5))

        assert query == SearchQuery(text="invoice", limit=5, deleted=True)

    def test_folder_accepts_plain_string(self) -> None:
        filters = filters_for_folder("sent", cursor=3)

        assert filters.direction == EmailDirection.OUTGOING
        assert filters.cursor == 3
