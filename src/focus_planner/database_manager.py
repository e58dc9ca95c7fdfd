from __future__ import annotations

"""Database management and migrations for Focus Planner.

A minimal SQLite migration system: each schema change is a function in the
MIGRATIONS list and applied versions are tracked in ``schema_migrations``.

Idempotency: ``init_db`` can be safely called multiple times.
"""

from dataclasses import dataclass
from pathlib import Path
import sqlite3
from typing import Callable, Iterable


@dataclass(slots=True)
class DBConfig:
    path: Path
    pragmas: tuple[tuple[str, str | int], ...] = (
        ("journal_mode", "WAL"),
        ("foreign_keys", 1),
        ("synchronous", "NORMAL"),
    )


class DatabaseManager:
    def __init__(self, config: DBConfig):
        self.config = config
        self._conn: sqlite3.Connection | None = None

    # --- Low level helpers -------------------------------------------------
    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self.config.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.config.path)
            self._conn.row_factory = sqlite3.Row
            self._apply_pragmas(self._conn)
        return self._conn

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        for key, value in self.config.pragmas:
            cur.execute(f"PRAGMA {key}={value}")
        cur.close()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # --- Migration system --------------------------------------------------
    def init_db(self) -> None:
        conn = self.connect()
        with conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
                )
                """
            )

        applied_versions = self._get_applied_versions()
        for version, migration_fn in enumerate(MIGRATIONS, start=1):
            if version in applied_versions:
                continue
            with conn:
                migration_fn(conn)
                conn.execute(
                    "INSERT INTO schema_migrations (version) VALUES (?)", (version,)
                )

    def _get_applied_versions(self) -> set[int]:
        conn = self.connect()
        cur = conn.execute("SELECT version FROM schema_migrations")
        return {row[0] for row in cur.fetchall()}

    # --- Convenience -------------------------------------------------------
    def execute(self, sql: str, params: Iterable | None = None) -> sqlite3.Cursor:
        conn = self.connect()
        with conn:
            return conn.execute(sql, list(params or []))

    def query_all(self, sql: str, params: Iterable | None = None) -> list[sqlite3.Row]:
        return self.connect().execute(sql, list(params or [])).fetchall()

    def query_one(self, sql: str, params: Iterable | None = None) -> sqlite3.Row | None:
        return self.connect().execute(sql, list(params or [])).fetchone()


# --- Migration definitions --------------------------------------------------

def migration_001_create_core_tables(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL DEFAULT 'General',
            tags TEXT NOT NULL DEFAULT '[]', -- JSON array
            duration_hours REAL NOT NULL DEFAULT 1,
            completed INTEGER NOT NULL DEFAULT 0,
            completed_at TEXT,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
        );

        CREATE TABLE settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE INDEX idx_tasks_completed ON tasks(completed);
        """
    )


MIGRATIONS: list[Callable[[sqlite3.Connection], None]] = [
    migration_001_create_core_tables,
]

__all__ = [
    "DBConfig",
    "DatabaseManager",
]
