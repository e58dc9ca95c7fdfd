from __future__ import annotations

"""TaskStore provides a cached list of tasks with change signals."""

from typing import List, Optional
from PyQt6.QtCore import QObject, pyqtSignal

from .repositories import (
    list_tasks,
    create_task,
    update_task,
    delete_task,
    mark_task_completed,
    get_setting,
    set_setting,
)
from .models import Task, utc_now_iso


SELECTED_KEY = "selected_task_id"
QUICK_TASK_TITLE = "Quick Focus Session"
MAX_QUICK_HOURS = 8.0


def new_quick_task(duration_hours: float, title: str | None = None) -> Task:
    """Build an unsaved task for the quick focus timer."""
    if not duration_hours or duration_hours <= 0:
        raise ValueError("Please enter a valid duration")
    if duration_hours > MAX_QUICK_HOURS:
        raise ValueError("Duration cannot exceed 8 hours. Please break it into smaller sessions.")
    return Task(
        id=None,
        title=(title or "").strip() or QUICK_TASK_TITLE,
        duration_hours=float(duration_hours),
        is_quick=True,
        created_at=utc_now_iso(),
    )


class TaskStore(QObject):
    changed = pyqtSignal()
    error = pyqtSignal(str)

    def __init__(self, db):
        super().__init__()
        self._db = db
        self._tasks: List[Task] = []
        self._loaded = False

    # --- Loading --------------------------------------------------------
    def load(self) -> None:
        self._tasks = list_tasks(self._db)
        self._loaded = True
        self.changed.emit()

    # --- CRUD -----------------------------------------------------------
    def _validate(self, title: str, duration_hours: float) -> bool:
        if not title.strip():
            self.error.emit("Title required")
            return False
        if duration_hours <= 0:
            self.error.emit("Duration must be greater than zero")
            return False
        return True

    def create(
        self,
        title: str,
        duration_hours: float,
        *,
        description: str = "",
        category: str = "General",
        tags: list[str] | None = None,
    ) -> Optional[Task]:
        if not self._validate(title, duration_hours):
            return None
        t = create_task(
            self._db,
            Task(
                id=None,
                title=title.strip(),
                description=description,
                category=category or "General",
                tags=list(tags or []),
                duration_hours=duration_hours,
            ),
        )
        if not self._loaded:
            self.load()
        else:
            self._tasks.append(t)
            self.changed.emit()
        return t

    def update(self, task: Task, *, title: str, duration_hours: float, description: str = "") -> bool:
        if task.id is None:
            self.error.emit("Task has no id")
            return False
        if not self._validate(title, duration_hours):
            return False
        task.title = title.strip()
        task.duration_hours = duration_hours
        task.description = description
        update_task(self._db, task)
        self.changed.emit()
        return True

    def delete(self, task_id: int) -> bool:
        idx = next((i for i, t in enumerate(self._tasks) if t.id == task_id), None)
        if idx is None:
            return False
        delete_task(self._db, task_id)
        del self._tasks[idx]
        self.changed.emit()
        if self.get_selected_task_id() == task_id:
            set_setting(self._db, SELECTED_KEY, "")
        return True

    def mark_completed(self, task: Task) -> bool:
        """Mark the stored row for ``task`` done; ``task`` itself is left untouched.

        Quick-timer tasks are never written.
        """
        if task.is_quick or task.id is None:
            return False
        refreshed = mark_task_completed(self._db, task.id)
        if refreshed is None:
            self.error.emit("Task no longer exists")
            return False
        for i, t in enumerate(self._tasks):
            if t.id == task.id:
                self._tasks[i] = refreshed
        self.changed.emit()
        return True

    # --- Access ---------------------------------------------------------
    def tasks(self) -> List[Task]:
        if not self._loaded:
            self.load()
        return list(self._tasks)

    def pending_tasks(self) -> List[Task]:
        return [t for t in self.tasks() if not t.completed]

    # --- Selection persistence -----------------------------------------
    def get_selected_task_id(self) -> int | None:
        v = get_setting(self._db, SELECTED_KEY)
        if not v:
            return None
        try:
            return int(v)
        except ValueError:
            return None

    def set_selected_task_id(self, task_id: int | None) -> None:
        set_setting(self._db, SELECTED_KEY, "" if task_id is None else str(task_id))


__all__ = ["TaskStore", "SELECTED_KEY", "new_quick_task", "MAX_QUICK_HOURS"]
