"""Listing filter resolution.

A listing request carries several optional filters, but only one query path
runs per request. The rules below are checked in order and the first match
wins:

1. non-blank ``search``: text search, with direction, importance and
   deletion applied as extra conditions
2. ``threaded``: latest message per thread; a direction is required
3. ``direction``: flat list for that direction
4. ``important``: flat list of important messages
5. ``deleted``: flat trash list
6. otherwise every non-deleted message, without a page limit
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

import structlog

from email_thread_engine.exceptions import InvalidOperationError, ValidationError
from email_thread_engine.models import EmailDirection, EmailListFilters
from email_thread_engine.store import DEFAULT_PAGE_SIZE

logger = structlog.get_logger()


@dataclass(frozen=True)
class SearchQuery:
    kind: ClassVar[str] = "search"

    text: str
    limit: int
    cursor: int | None = None
    direction: EmailDirection | None = None
    important: bool | None = None
    deleted: bool | None = None


@dataclass(frozen=True)
class ThreadedQuery:
    kind: ClassVar[str] = "threaded"

    direction: EmailDirection
    limit: int
    cursor: int | None = None


@dataclass(frozen=True)
class DirectionQuery:
    kind: ClassVar[str] = "direction"

    direction: EmailDirection
    limit: int
    cursor: int | None = None


@dataclass(frozen=True)
class ImportantQuery:
    kind: ClassVar[str] = "important"

    limit: int
    cursor: int | None = None


@dataclass(frozen=True)
class DeletedQuery:
    kind: ClassVar[str] = "deleted"

    limit: int
    cursor: int | None = None


@dataclass(frozen=True)
class DefaultQuery:
    """All non-deleted messages; unbounded, so no limit or cursor."""

    kind: ClassVar[str] = "default"


ResolvedQuery = Union[
    SearchQuery, ThreadedQuery, DirectionQuery, ImportantQuery, DeletedQuery, DefaultQuery
]


def _has_search(f: EmailListFilters) -> bool:
    return bool(f.search and f.search.strip())


def _build_search(f: EmailListFilters, limit: int) -> SearchQuery:
    assert f.search is not None
    return SearchQuery(
        text=f.search.strip(),
        limit=limit,
        cursor=f.cursor,
        direction=f.direction,
        important=f.important,
        deleted=f.deleted,
    )


def _build_threaded(f: EmailListFilters, limit: int) -> ThreadedQuery:
    if f.direction is None:
        raise InvalidOperationError("Threaded view requires a direction")
    return ThreadedQuery(direction=f.direction, limit=limit, cursor=f.cursor)


def _build_direction(f: EmailListFilters, limit: int) -> DirectionQuery:
    assert f.direction is not None
    return DirectionQuery(direction=f.direction, limit=limit, cursor=f.cursor)


_Rule = tuple[str, Callable[[EmailListFilters], bool], Callable[[EmailListFilters, int], ResolvedQuery]]

# Order is precedence.
_RULES: tuple[_Rule, ...] = (
    ("search", _has_search, _build_search),
    ("threaded", lambda f: bool(f.threaded), _build_threaded),
    ("direction", lambda f: f.direction is not None, _build_direction),
    ("important", lambda f: f.important is True, lambda f, limit: ImportantQuery(limit, f.cursor)),
    ("deleted", lambda f: f.deleted is True, lambda f, limit: DeletedQuery(limit, f.cursor)),
)


def resolve_query(
    filters: EmailListFilters,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int | None = None,
) -> ResolvedQuery:
    """Pick the single query path for a set of listing filters.

    Args:
        filters: Listing filters supplied by the caller.
        default_limit: Page size when ``filters.limit`` is unset.
        max_limit: Largest page size accepted, if bounded.

    Returns:
        Exactly one query descriptor.

    Raises:
        InvalidOperationError: If ``threaded`` is requested without a direction.
        ValidationError: If the requested limit exceeds ``max_limit``.
    """

    limit = filters.limit if filters.limit is not None else default_limit
    if max_limit is not None and limit > max_limit:
        raise ValidationError(f"limit must not exceed {max_limit}")

    for name, matches, build in _RULES:
        if matches(filters):
            query = build(filters, limit)
            logger.debug("query_resolved", rule=name, kind=query.kind)
            return query

    logger.debug("query_resolved", rule="default", kind=DefaultQuery.kind)
    return DefaultQuery()


class Folder(str, Enum):
    """Sidebar folders of the mail client."""

    INBOX = "inbox"
    SENT = "sent"
    IMPORTANT = "important"
    TRASH = "trash"


def filters_for_folder(
    folder: Folder,
    search: str | None = None,
    cursor: int | None = None,
    limit: int | None = None,
) -> EmailListFilters:
    """Translate a folder selection into listing filters.

    With a search term the folder still narrows the search: inbox and sent
    add a direction, important adds the importance flag, and trash searches
    deleted messages.
    """

    folder = Folder(folder)
    if folder is Folder.INBOX:
        mode = {"threaded": True, "direction": EmailDirection.INCOMING}
    elif folder is Folder.SENT:
        mode = {"threaded": True, "direction": EmailDirection.OUTGOING}
    elif folder is Folder.IMPORTANT:
        mode = {"important": True}
    else:
        mode = {"deleted": True}

    return EmailListFilters(search=search, cursor=cursor, limit=limit, **mode)
