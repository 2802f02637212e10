"""Data Access Layer for the metadata key/value table.

Each call opens its own short-lived connection; callers that need an async
interface wrap these methods in a worker thread (see services.storage).
"""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Optional

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    # ------------------------------------------------------------------
    # Key/value access
    def get_value(self, key: str) -> Optional[str]:
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM metadata WHERE key = ?", (key,))
            row = cur.fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set_value(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    f"""
                    INSERT INTO metadata (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = ({UTC_NOW_SQL})
                    """,
                    (key, value),
                )
        finally:
            conn.close()

