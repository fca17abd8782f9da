"""SQLite-backed repository for email rows.

Every listing is ordered by ``id`` descending and paginated with an id
cursor: the caller passes the id of the last row it received and gets rows
with a strictly smaller id. A page shorter than the requested limit means
there is nothing left; this layer never reports a separate "has more" flag.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import structlog

from email_thread_engine.exceptions import ConfigurationError
from email_thread_engine.models import Email, EmailDirection
from email_thread_engine.store import schema

logger = structlog.get_logger()


DEFAULT_PAGE_SIZE = 20

_COLUMNS = """
    e.id,
    e.thread_id,
    e.subject,
    e.from_address,
    e.to_address,
    e.cc,
    e.bcc,
    e.content,
    e.direction,
    e.is_read,
    e.is_important,
    e.is_deleted,
    e.created_at,
    e.updated_at
"""

_SEARCH_FIELDS = ("subject", "from_address", "to_address", "cc", "bcc", "content")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(dt: datetime) -> str:
    # Fixed-width UTC strings sort the same way as the instants they encode.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class EmailRepository:
    """Repository for storing and querying email rows."""

    def __init__(self, db_path: Path) -> None:
        """Create a repository.

        Args:
            db_path: Path to the SQLite database file.
        """

        self._db_path = db_path

    @property
    def db_path(self) -> Path:
        return self._db_path

    def initialize(self) -> None:
        """Create the schema if needed and check its version."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            schema.create_meta_table(conn)

            current_version = schema.get_schema_version(conn)
            if current_version is None:
                schema.create_schema_v1(conn)
                schema.set_schema_version(conn, schema.SCHEMA_VERSION)
                conn.commit()
                logger.info("email_store_schema_created", version=schema.SCHEMA_VERSION)
                return

            if current_version != schema.SCHEMA_VERSION:
                raise ConfigurationError(
                    f"Unsupported schema version {current_version}; "
                    f"expected {schema.SCHEMA_VERSION}"
                )

    # Writes -----------------------------------------------------------------

    def create(
        self,
        *,
        thread_id: str,
        subject: str,
        from_address: str,
        to_address: str,
        content: str | None = None,
        cc: str | None = None,
        bcc: str | None = None,
        direction: EmailDirection = EmailDirection.INCOMING,
        is_read: bool = False,
        is_important: bool = False,
        created_at: datetime | None = None,
    ) -> Email:
        """Insert a new row and return it as stored."""

        created_iso = _to_iso(created_at or _now())

        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO emails (
                    thread_id,
                    subject,
                    from_address,
                    to_address,
                    cc,
                    bcc,
                    content,
                    direction,
                    is_read,
                    is_important,
                    is_deleted,
                    created_at,
                    updated_at
                )
                VALUES (
                    :thread_id,
                    :subject,
                    :from_address,
                    :to_address,
                    :cc,
                    :bcc,
                    :content,
                    :direction,
                    :is_read,
                    :is_important,
                    0,
                    :created_at,
                    :created_at
                )
                """,
                {
                    "thread_id": thread_id,
                    "subject": subject,
                    "from_address": from_address,
                    "to_address": to_address,
                    "cc": cc,
                    "bcc": bcc,
                    "content": content,
                    "direction": EmailDirection(direction).value,
                    "is_read": 1 if is_read else 0,
                    "is_important": 1 if is_important else 0,
                    "created_at": created_iso,
                },
            )
            conn.commit()
            email_id = int(cur.lastrowid)

        email = self.find_by_id(email_id)
        if email is None:
            raise RuntimeError(f"Inserted email {email_id} could not be read back")
        return email

    def update(
        self,
        email_id: int,
        *,
        is_read: bool | None = None,
        is_important: bool | None = None,
    ) -> Email | None:
        """Apply flag changes to a non-deleted row.

        Returns:
            The updated row, or None when no non-deleted row has this id.
            Deleted rows are never modified here.
        """

        assignments = ["updated_at = :updated_at"]
        params: dict[str, object] = {"id": email_id, "updated_at": _to_iso(_now())}
        if is_read is not None:
            assignments.append("is_read = :is_read")
            params["is_read"] = 1 if is_read else 0
        if is_important is not None:
            assignments.append("is_important = :is_important")
            params["is_important"] = 1 if is_important else 0

        if len(assignments) == 1:
            raise ValueError("update() needs at least one field to change")

        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE emails SET {', '.join(assignments)} WHERE id = :id AND is_deleted = 0",
                params,
            )
            conn.commit()
            changed = cur.rowcount

        if not changed:
            return None
        return self.find_by_id(email_id)

    def soft_delete(self, email_id: int) -> int:
        """Mark one row deleted. Returns the number of rows changed (0 or 1)."""

        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE emails
                SET is_deleted = 1, updated_at = :updated_at
                WHERE id = :id AND is_deleted = 0
                """,
                {"id": email_id, "updated_at": _to_iso(_now())},
            )
            conn.commit()
            return int(cur.rowcount or 0)

    def soft_delete_by_thread(self, thread_id: str) -> int:
        """Mark every non-deleted row of a thread deleted in one statement."""

        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE emails
                SET is_deleted = 1, updated_at = :updated_at
                WHERE thread_id = :thread_id AND is_deleted = 0
                """,
                {"thread_id": thread_id, "updated_at": _to_iso(_now())},
            )
            conn.commit()
            return int(cur.rowcount or 0)

    def mark_thread_read(self, thread_id: str) -> int:
        """Set ``is_read`` on every non-deleted row of a thread."""

        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE emails
                SET is_read = 1, updated_at = :updated_at
                WHERE thread_id = :thread_id AND is_deleted = 0
                """,
                {"thread_id": thread_id, "updated_at": _to_iso(_now())},
            )
            conn.commit()
            return int(cur.rowcount or 0)

    # Reads ------------------------------------------------------------------

    def find_by_id(self, email_id: int, include_deleted: bool = False) -> Email | None:
        conditions = ["e.id = :id"]
        if not include_deleted:
            conditions.append("e.is_deleted = 0")

        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM emails AS e WHERE {' AND '.join(conditions)}",
                {"id": email_id},
            ).fetchone()

        return self._row_to_email(row) if row is not None else None

    def find_all(self) -> list[Email]:
        """All non-deleted rows, newest first, without a page limit."""

        return self._select(["e.is_deleted = 0"], {}, limit=None, cursor=None)

    def find_deleted(
        self, limit: int = DEFAULT_PAGE_SIZE, cursor: int | None = None
    ) -> list[Email]:
        return self._select(["e.is_deleted = 1"], {}, limit=limit, cursor=cursor)

    def find_by_direction(
        self,
        direction: EmailDirection,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: int | None = None,
    ) -> list[Email]:
        return self._select(
            ["e.direction = :direction", "e.is_deleted = 0"],
            {"direction": EmailDirection(direction).value},
            limit=limit,
            cursor=cursor,
        )

    def find_important(
        self, limit: int = DEFAULT_PAGE_SIZE, cursor: int | None = None
    ) -> list[Email]:
        return self._select(
            ["e.is_important = 1", "e.is_deleted = 0"], {}, limit=limit, cursor=cursor
        )

    def search(
        self,
        query: str,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: int | None = None,
        *,
        direction: EmailDirection | None = None,
        important: bool | None = None,
        deleted: bool | None = None,
    ) -> list[Email]:
        """Case-insensitive substring search over the address and text fields.

        Args:
            query: Text to look for; ``%`` and ``_`` match literally.
            limit: Page size.
            cursor: Id of the last row of the previous page.
            direction: Restrict to one direction.
            important: Restrict to important (True) or unimportant (False) rows.
            deleted: True for deleted rows only; None or False excludes them.
        """

        matches = " OR ".join(f"e.{field} LIKE :pattern ESCAPE '\\'" for field in _SEARCH_FIELDS)
        conditions = [f"({matches})"]
        params: dict[str, object] = {"pattern": _like_pattern(query)}

        if direction is not None:
            conditions.append("e.direction = :direction")
            params["direction"] = EmailDirection(direction).value
        if important is not None:
            conditions.append("e.is_important = :important")
            params["important"] = 1 if important else 0
        conditions.append("e.is_deleted = 1" if deleted else "e.is_deleted = 0")

        return self._select(conditions, params, limit=limit, cursor=cursor)

    def latest_per_thread(
        self,
        direction: EmailDirection | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: int | None = None,
    ) -> list[Email]:
        """Return the highest-id non-deleted row of each thread.

        When ``direction`` is given, only rows of that direction take part,
        both as candidates and when computing each thread's maximum id. The
        cursor is compared against the representative row's id.
        """

        inner = ["i.thread_id = e.thread_id", "i.is_deleted = 0"]
        conditions = ["e.is_deleted = 0"]
        params: dict[str, object] = {}
        if direction is not None:
            inner.append("i.direction = :direction")
            conditions.append("e.direction = :direction")
            params["direction"] = EmailDirection(direction).value

        conditions.append(
            f"e.id = (SELECT MAX(i.id) FROM emails AS i WHERE {' AND '.join(inner)})"
        )
        return self._select(conditions, params, limit=limit, cursor=cursor)

    def find_by_thread_id(
        self,
        thread_id: str,
        include_deleted: bool = False,
        only_deleted: bool = False,
    ) -> list[Email]:
        """Rows of one thread in chronological order.

        ``only_deleted`` wins over ``include_deleted`` when both are set.
        """

        conditions = ["e.thread_id = :thread_id"]
        if only_deleted:
            conditions.append("e.is_deleted = 1")
        elif not include_deleted:
            conditions.append("e.is_deleted = 0")

        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS}
                FROM emails AS e
                WHERE {' AND '.join(conditions)}
                ORDER BY e.created_at ASC, e.id ASC
                """,
                {"thread_id": thread_id},
            ).fetchall()

        return [self._row_to_email(row) for row in rows]

    def count_unread_inbox(self) -> int:
        with self._connect() as conn:
            (count,) = conn.execute(
                """
                SELECT COUNT(*)
                FROM emails
                WHERE direction = 'incoming' AND is_deleted = 0 AND is_read = 0
                """
            ).fetchone()
        return int(count or 0)

    def count_important(self) -> int:
        with self._connect() as conn:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM emails WHERE is_important = 1 AND is_deleted = 0"
            ).fetchone()
        return int(count or 0)

    # Helpers ----------------------------------------------------------------

    def _select(
        self,
        conditions: list[str],
        params: dict[str, object],
        *,
        limit: int | None,
        cursor: int | None,
    ) -> list[Email]:
        conditions = list(conditions)
        params = dict(params)
        if cursor is not None:
            conditions.append("e.id < :cursor")
            params["cursor"] = cursor

        sql = f"SELECT {_COLUMNS} FROM emails AS e WHERE {' AND '.join(conditions)} ORDER BY e.id DESC"
        if limit is not None:
            sql += " LIMIT :limit"
            params["limit"] = limit

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()

        return [self._row_to_email(row) for row in rows]

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        try:
            conn.row_factory = sqlite3.Row
            yield conn
        finally:
            conn.close()

    def _row_to_email(self, row: sqlite3.Row) -> Email:
        return Email(
            id=row["id"],
            thread_id=row["thread_id"],
            subject=row["subject"],
            from_address=row["from_address"],
            to_address=row["to_address"],
            cc=row["cc"],
            bcc=row["bcc"],
            content=row["content"],
            direction=EmailDirection(row["direction"]),
            is_read=bool(row["is_read"]),
            is_important=bool(row["is_important"]),
            is_deleted=bool(row["is_deleted"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
