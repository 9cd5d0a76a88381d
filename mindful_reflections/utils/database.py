"""
Database module
Key-value storage on top of a local SQLite file
"""

import sqlite3
from pathlib import Path
from typing import Optional
from .config import settings
from .errors import StorageError
from .logger import logger


class Database:
    """Key-value database"""

    def __init__(self, db_url: str = None):
        """
        Open the database

        Args:
            db_url: database URL, defaults to the configured one
        """
        self.db_url = db_url or settings.database_url
        self.db_path = self._parse_db_path()
        self._init_db()

    def _parse_db_path(self) -> str:
        """Resolve the database file path"""
        if self.db_url.startswith("sqlite:///"):
            return self.db_url.replace("sqlite:///", "")
        return self.db_url

    def _init_db(self):
        """Create the database file and the key-value table"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
            logger.info("Database initialized")

    def get_connection(self):
        """Open a connection"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value

        Args:
            key: storage key

        Returns:
            the stored string, or None when the key is absent
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row["value"] if row else None
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read key '{key}': {e}") from e

    def set_item(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one

        Args:
            key: storage key
            value: string to store
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
                    (key, value)
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write key '{key}': {e}") from e

    def remove_item(self, key: str) -> int:
        """
        Delete a key

        Args:
            key: storage key

        Returns:
            number of rows removed
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove key '{key}': {e}") from e

