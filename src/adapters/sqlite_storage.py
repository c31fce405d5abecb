"""SQLite storage adapter.

Implements the core SnapshotStorePort plus notification cursor bookkeeping
using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.models import TrackedItemSnapshot


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the SnapshotStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - tracked_items: last seen snapshot per (repo, number, channel)
        - comment_cursors: last surfaced comment URL per (repo, number, channel)
        - notification_cursors: last read timestamp per channel
        """

        with self._connect() as conn:
            # Fields:
            # - repo: repository full name, e.g. "org/repo"
            # - number: issue / pull request number as text
            # - channel: destination channel id
            # - snapshot: JSON encoded TrackedItemSnapshot
            # - updated_at: last write, used by the retention sweep
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tracked_items (
                    repo TEXT NOT NULL,
                    number TEXT NOT NULL,
                    channel TEXT NOT NULL,
                    snapshot TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    PRIMARY KEY (repo, number, channel)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS comment_cursors (
                    repo TEXT NOT NULL,
                    number TEXT NOT NULL,
                    channel TEXT NOT NULL,
                    comment_url TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    PRIMARY KEY (repo, number, channel)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notification_cursors (
                    channel TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    last_read_ts INTEGER NOT NULL
                )
                """
            )

    def get_snapshot(self, repo: str, number: str, channel: str) -> Optional[TrackedItemSnapshot]:
        """Return the last stored snapshot for an item in a channel, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT snapshot FROM tracked_items WHERE repo = ? AND number = ? AND channel = ?",
                (repo, number, channel),
            ).fetchone()
        if row is None:
            return None
        return TrackedItemSnapshot.from_dict(json.loads(row["snapshot"]))

    def set_snapshot(self, repo: str, number: str, channel: str, snapshot: TrackedItemSnapshot) -> None:
        """Upsert the snapshot for an item in a channel."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tracked_items (repo, number, channel, snapshot, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(repo, number, channel) DO UPDATE SET
                    snapshot = excluded.snapshot,
                    updated_at = excluded.updated_at
                """,
                (repo, number, channel, json.dumps(snapshot.to_dict()), now.isoformat()),
            )

    def get_last_comment_url(self, repo: str, number: str, channel: str) -> Optional[str]:
        """Return the last comment URL surfaced for an item in a channel, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT comment_url FROM comment_cursors WHERE repo = ? AND number = ? AND channel = ?",
                (repo, number, channel),
            ).fetchone()
        return str(row["comment_url"]) if row else None

    def set_last_comment_url(self, repo: str, number: str, channel: str, url: str) -> None:
        """Upsert the last surfaced comment URL for an item in a channel."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO comment_cursors (repo, number, channel, comment_url, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(repo, number, channel) DO UPDATE SET
                    comment_url = excluded.comment_url,
                    updated_at = excluded.updated_at
                """,
                (repo, number, channel, url, now.isoformat()),
            )

    def get_notifications_cursor(self, channel: str) -> Optional[int]:
        """Return the last read timestamp recorded for a channel, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT last_read_ts FROM notification_cursors WHERE channel = ?",
                (channel,),
            ).fetchone()
        return int(row["last_read_ts"]) if row else None

    def set_notifications_cursor(self, channel: str, user_id: str, last_read_ts: int) -> None:
        """Upsert the last read timestamp for a channel."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO notification_cursors (channel, user_id, last_read_ts)
                VALUES (?, ?, ?)
                ON CONFLICT(channel) DO UPDATE SET
                    user_id = excluded.user_id,
                    last_read_ts = excluded.last_read_ts
                """,
                (channel, user_id, last_read_ts),
            )

    def cleanup_tracked_items(self, ttl_days: int) -> int:
        """Delete snapshots and comment cursors older than the TTL; return rows removed."""

        cutoff = datetime.now(timezone.utc) - timedelta(days=ttl_days)
        with self._connect() as conn:
            removed = conn.execute(
                "DELETE FROM tracked_items WHERE updated_at < ?",
                (cutoff.isoformat(),),
            ).rowcount
            removed += conn.execute(
                "DELETE FROM comment_cursors WHERE updated_at < ?",
                (cutoff.isoformat(),),
            ).rowcount
        return removed
