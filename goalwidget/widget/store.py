"""SQLite key-value store shared with the native renderer."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Single-table key-value store; other processes read the same file."""

    def __init__(self, db_path: str = "data/widget.db"):
        """Initialize database."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        logger.info(f"Snapshot store initialized at {self.db_path}")

    def load(self, key: str) -> Optional[str]:
        """Get value by key, None if it was never written."""
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()

        if not row:
            return None
        return row[0]

    def save(self, key: str, value: str):
        """
        Overwrite the value under ``key``.

        The commit has completed when this returns.

        Raises:
            sqlite3.Error: if the write fails
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now().isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save {key}: {e}")
            raise
