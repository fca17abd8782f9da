"""Message store schema.

One ``emails`` table holds every message row. The secondary indexes cover the
access paths used by the repository: thread lookups, folder listings,
importance listings and the unread-inbox badge count.
"""

from __future__ import annotations

import sqlite3

SCHEMA_VERSION = 1


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    row = conn.execute(
        "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
    ).fetchone()
    if row is None:
        return None
    return int(row[0])


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?)",
        (str(version),),
    )


def create_meta_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS _schema_meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
        """
    )


def create_schema_v1(conn: sqlite3.Connection) -> None:
    """Create the ``emails`` table and its indexes."""

    # AUTOINCREMENT keeps ids monotonic even after the highest row is removed
    # by hand, so id order stays a safe stand-in for recency.
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS emails (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            thread_id TEXT NOT NULL,
            subject TEXT NOT NULL,
            from_address TEXT NOT NULL,
            to_address TEXT NOT NULL,
            cc TEXT,
            bcc TEXT,
            content TEXT,
            direction TEXT NOT NULL DEFAULT 'incoming'
                CHECK (direction IN ('incoming', 'outgoing')),
            is_read INTEGER NOT NULL DEFAULT 0,
            is_important INTEGER NOT NULL DEFAULT 0,
            is_deleted INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_emails_thread_id ON emails(thread_id);
        CREATE INDEX IF NOT EXISTS idx_emails_is_deleted ON emails(is_deleted);
        CREATE INDEX IF NOT EXISTS idx_emails_direction ON emails(direction);
        CREATE INDEX IF NOT EXISTS idx_emails_is_important ON emails(is_important);
        CREATE INDEX IF NOT EXISTS idx_emails_created_at ON emails(created_at);

        -- latest-per-thread and folder listings
        CREATE INDEX IF NOT EXISTS idx_emails_direction_deleted
            ON emails(direction, is_deleted);

        -- thread expansion and thread-wide updates
        CREATE INDEX IF NOT EXISTS idx_emails_thread_deleted
            ON emails(thread_id, is_deleted);

        -- important listing and badge count
        CREATE INDEX IF NOT EXISTS idx_emails_important_deleted
            ON emails(is_important, is_deleted);

        -- unread inbox badge count
        CREATE INDEX IF NOT EXISTS idx_emails_inbox_unread
            ON emails(direction, is_deleted, is_read);
        """
    )
