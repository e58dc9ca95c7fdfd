from __future__ import annotations

"""Repository helper functions for CRUD operations."""

import json
import sqlite3

from .database_manager import DatabaseManager
from .models import Task, utc_now_iso


# --- Generic helpers -------------------------------------------------------

def _last_row_id(cur: sqlite3.Cursor) -> int:
    return int(cur.lastrowid)  # type: ignore[arg-type]


def _row_to_task(row: sqlite3.Row) -> Task:
    try:
        tags = json.loads(row["tags"] or "[]")
    except ValueError:
        tags = []
    return Task(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        tags=list(tags),
        duration_hours=float(row["duration_hours"]),
        completed=bool(row["completed"]),
        completed_at=row["completed_at"],
        created_at=row["created_at"],
    )


# --- Tasks ------------------------------------------------------------------

def create_task(db: DatabaseManager, task: Task) -> Task:
    cur = db.execute(
        "INSERT INTO tasks (title, description, category, tags, duration_hours) VALUES (?,?,?,?,?)",
        (task.title, task.description, task.category, json.dumps(task.tags), task.duration_hours),
    )
    task.id = _last_row_id(cur)
    row = db.query_one("SELECT created_at FROM tasks WHERE id=?", (task.id,))
    if row:
        task.created_at = row["created_at"]
    return task


def get_task(db: DatabaseManager, task_id: int) -> Task | None:
    row = db.query_one("SELECT * FROM tasks WHERE id=?", (task_id,))
    return _row_to_task(row) if row else None


def list_tasks(db: DatabaseManager, *, include_completed: bool = True) -> list[Task]:
    sql = "SELECT * FROM tasks"
    if not include_completed:
        sql += " WHERE completed=0"
    rows = db.query_all(sql + " ORDER BY id")
    return [_row_to_task(r) for r in rows]


def update_task(db: DatabaseManager, task: Task) -> None:
    if task.id is None:
        raise ValueError("Task id required for update")
    db.execute(
        """
        UPDATE tasks SET title=?, description=?, category=?, tags=?, duration_hours=?,
            completed=?, completed_at=?
        WHERE id=?
        """,
        (
            task.title,
            task.description,
            task.category,
            json.dumps(task.tags),
            task.duration_hours,
            int(task.completed),
            task.completed_at,
            task.id,
        ),
    )


def mark_task_completed(db: DatabaseManager, task_id: int, completed_at: str | None = None) -> Task | None:
    db.execute(
        "UPDATE tasks SET completed=1, completed_at=? WHERE id=?",
        (completed_at or utc_now_iso(), task_id),
    )
    return get_task(db, task_id)


def delete_task(db: DatabaseManager, task_id: int) -> None:
    db.execute("DELETE FROM tasks WHERE id=?", (task_id,))


__all__ = [
    "create_task",
    "get_task",
    "list_tasks",
    "update_task",
    "mark_task_completed",
    "delete_task",
]

# --- Settings ---------------------------------------------------------------

def get_setting(db: DatabaseManager, key: str) -> str | None:
    row = db.query_one("SELECT value FROM settings WHERE key=?", (key,))
    return row["value"] if row else None


def set_setting(db: DatabaseManager, key: str, value: str) -> None:
    db.execute(
        "INSERT INTO settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
        (key, value),
    )


def delete_setting(db: DatabaseManager, key: str) -> None:
    db.execute("DELETE FROM settings WHERE key=?", (key,))

__all__ += ["get_setting", "set_setting", "delete_setting"]
