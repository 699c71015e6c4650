import json
import logging
import sqlite3
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Self

Params = Sequence[Any] | Mapping[str, Any]


class Database:
    """
    SQLite file holding every persisted collection as one JSON blob per key.

    Usage:
        with Database(Path("equity_tracker.db")) as db:
            db.create_tables_if_not_exists()
            db.save("prices", {"INFY": 1520.5})
            db.load("prices")  # -> {"INFY": 1520.5}

    Each write commits on its own; leaving the with block commits, or rolls
    back if an exception escapes, and closes the connection.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path: Path = db_path
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.conn: sqlite3.Connection = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self.logger.debug(f"Opened store at {db_path}")

    @staticmethod
    def _check_placeholders(query: str, params: Params) -> None:
        if "?" in query and isinstance(params, Mapping):
            raise ValueError("Positional placeholders (?) used with named parameters.")
        if isinstance(params, (list, tuple)) and params and ":" in query:
            raise ValueError("Named placeholders (:) used with positional parameters.")

    def execute(self, query: str, params: Params | None = None) -> sqlite3.Cursor:
        """Run one statement in its own transaction; sqlite errors roll back and re-raise."""
        params = params if params is not None else ()
        self._check_placeholders(query, params)
        self.logger.debug(f"SQL: {' '.join(query.split())} | params={params}")

        try:
            with self.conn:
                return self.conn.execute(query, params)
        except sqlite3.Error:
            self.logger.error(f"Database error running: {' '.join(query.split())}", exc_info=True)
            raise

    def commit(self) -> None:
        try:
            self.conn.commit()
        except sqlite3.DatabaseError as e:
            self.logger.error(f"Error committing changes: {e}")
            raise

    def rollback(self) -> None:
        try:
            self.conn.rollback()
            self.logger.warning("Database changes rolled back.")
        except sqlite3.DatabaseError as e:
            self.logger.error(f"Error rolling back changes: {e}")
            raise

    def query_one(self, query: str, params: Params | None = None) -> sqlite3.Row | None:
        return self.execute(query, params).fetchone()

    def query_all(self, query: str, params: Params | None = None) -> list[sqlite3.Row]:
        return self.execute(query, params).fetchall()

    # --- Key-value blob store ---

    def load(self, key: str) -> Any | None:
        """Return the JSON value stored under `key`, or None if nothing is stored."""
        row: sqlite3.Row | None = self.query_one("SELECT value FROM kv_store WHERE key = ?", (key,))
        return json.loads(row["value"]) if row is not None else None

    def save(self, key: str, value: Any) -> None:
        """Store `value` as JSON under `key`, replacing any previous value."""
        _ = self.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (:key, :value, :updated_at)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            {
                "key": key,
                "value": json.dumps(value),
                "updated_at": datetime.now().isoformat(timespec="seconds"),
            },
        )

    def delete(self, key: str) -> None:
        _ = self.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        return [row["key"] for row in self.query_all("SELECT key FROM kv_store ORDER BY key")]

    def create_tables_if_not_exists(self) -> None:
        _ = self.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type:
            self.rollback()
        else:
            self.commit()
        self.close()
