from __future__ import annotations

"""Dataclass models for tasks, session plans and scheduler state."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().replace(microsecond=0).isoformat()


@dataclass(slots=True)
class Task:
    id: Optional[int]
    title: str
    description: str = ""
    category: str = "General"
    tags: list[str] = field(default_factory=list)
    duration_hours: float = 1.0
    completed: bool = False
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    is_quick: bool = False  # quick-timer task, never written to the tasks table


class BreakKind(str, Enum):
    NONE = "none"
    SHORT = "short"
    LONG = "long"


class Phase(str, Enum):
    WORK = "work"
    BREAK = "break"


class NotificationKind(str, Enum):
    WORK_SESSION_COMPLETE = "workSessionComplete"
    BREAK_COMPLETE = "breakComplete"
    TASK_COMPLETE = "taskComplete"


class Mode(str, Enum):
    IDLE = "idle"
    WORK_RUNNING = "work_running"
    WORK_PAUSED = "work_paused"
    BREAK_RUNNING = "break_running"
    BREAK_PAUSED = "break_paused"
    ALL_COMPLETE = "all_complete"


@dataclass(frozen=True, slots=True)
class SessionDescriptor:
    """One work interval plus its optional trailing break."""

    session_number: int
    work_seconds: int
    break_seconds: int
    break_kind: BreakKind

    @property
    def has_break(self) -> bool:
        return self.break_seconds > 0


@dataclass(frozen=True, slots=True)
class SchedulerState:
    """Snapshot of the focus-session scheduler.

    Instances are never mutated; every transition produces a new state via
    ``dataclasses.replace``. ``started_at``/``paused_at`` are for display only,
    the countdown is driven purely by ticks.
    """

    active_task: Optional[Task] = None
    plan: tuple[SessionDescriptor, ...] = ()
    current_index: int = 0
    phase: Phase = Phase.WORK
    running: bool = False
    seconds_remaining: int = 0
    completed_indices: frozenset[int] = frozenset()
    started_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.active_task is not None

    @property
    def all_complete(self) -> bool:
        return bool(self.plan) and len(self.completed_indices) == len(self.plan)

    @property
    def current_session(self) -> Optional[SessionDescriptor]:
        if 0 <= self.current_index < len(self.plan):
            return self.plan[self.current_index]
        return None

    @property
    def has_next_session(self) -> bool:
        return self.current_index + 1 < len(self.plan)


EMPTY_STATE = SchedulerState()


__all__ = [
    "Task",
    "BreakKind",
    "Phase",
    "Mode",
    "NotificationKind",
    "SessionDescriptor",
    "SchedulerState",
    "EMPTY_STATE",
    "utc_now",
    "utc_now_iso",
]
