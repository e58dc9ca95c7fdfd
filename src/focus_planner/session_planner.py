from __future__ import annotations

"""Converts a task duration into an ordered list of focus sessions.

Every session is a full work block except possibly the last, which absorbs the
remainder. All sessions but the last carry a break; every Nth session gets the
long break. Nothing here touches Qt, the database or the clock.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .models import BreakKind, SessionDescriptor


@dataclass(slots=True)
class PlannerConfig:
    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    cycles_before_long_break: int = 4
    max_recommended_hours: float = 4.0

    def __post_init__(self) -> None:
        if self.work_minutes <= 0:
            raise ValueError("work_minutes must be greater than zero")
        if self.short_break_minutes < 0 or self.long_break_minutes < 0:
            raise ValueError("break minutes must not be negative")
        if self.cycles_before_long_break < 1:
            raise ValueError("cycles_before_long_break must be at least 1")


DEFAULT_CONFIG = PlannerConfig()


@dataclass(frozen=True, slots=True)
class PlanSummary:
    sessions: tuple[SessionDescriptor, ...]
    total_work_seconds: int
    total_break_seconds: int
    warning: Optional[str] = None

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @property
    def estimated_completion_seconds(self) -> int:
        return self.total_work_seconds + self.total_break_seconds


def _valid_hours(duration_hours: object) -> bool:
    if isinstance(duration_hours, bool) or not isinstance(duration_hours, (int, float)):
        return False
    return math.isfinite(duration_hours) and duration_hours > 0


def plan_sessions(duration_hours: float | None, config: PlannerConfig | None = None) -> list[SessionDescriptor]:
    """Return the session plan for ``duration_hours``.

    An absent, non-positive or non-finite duration yields an empty plan, which
    callers treat as "cannot start".
    """
    if not _valid_hours(duration_hours):
        return []
    cfg = config or DEFAULT_CONFIG
    unit = cfg.work_minutes * 60
    total_seconds = round(duration_hours * 3600)  # type: ignore[operator]
    count = math.ceil(total_seconds / unit)

    sessions: list[SessionDescriptor] = []
    for number in range(1, count + 1):
        work = min(unit, total_seconds - (number - 1) * unit)
        if number == count:
            brk, kind = 0, BreakKind.NONE
        elif number % cfg.cycles_before_long_break == 0:
            brk, kind = cfg.long_break_minutes * 60, BreakKind.LONG
        else:
            brk, kind = cfg.short_break_minutes * 60, BreakKind.SHORT
        if brk == 0:
            kind = BreakKind.NONE
        sessions.append(SessionDescriptor(number, work, brk, kind))
    return sessions


def summarize_plan(duration_hours: float | None, config: PlannerConfig | None = None) -> PlanSummary:
    cfg = config or DEFAULT_CONFIG
    sessions = tuple(plan_sessions(duration_hours, cfg))
    warning = None
    if sessions and duration_hours > cfg.max_recommended_hours:  # type: ignore[operator]
        warning = (
            f"This task is {_format_hours(duration_hours)}h long. "  # type: ignore[arg-type]
            "Consider splitting it into smaller tasks for better focus."
        )
    return PlanSummary(
        sessions=sessions,
        total_work_seconds=sum(s.work_seconds for s in sessions),
        total_break_seconds=sum(s.break_seconds for s in sessions),
        warning=warning,
    )


# --- Display helpers --------------------------------------------------------

def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_timer_display(seconds: int) -> str:
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins:02d}:{secs:02d}"


def _format_hours(duration_hours: float) -> str:
    # 2.0 -> "2", 2.5 -> "2.5"
    return f"{duration_hours:g}"


def pomodoro_preview(duration_hours: float | None, config: PlannerConfig | None = None) -> str:
    cfg = config or DEFAULT_CONFIG
    summary = summarize_plan(duration_hours, cfg)
    if summary.session_count == 0:
        return ""
    total = format_duration(round(summary.estimated_completion_seconds / 60))
    hours = _format_hours(duration_hours)  # type: ignore[arg-type]
    if summary.session_count == 1:
        return f"{hours}h task = 1 session ({total})"
    return f"{hours}h task = {summary.session_count} × {cfg.work_minutes}min sessions ({total} total)"


__all__ = [
    "PlannerConfig",
    "PlanSummary",
    "plan_sessions",
    "summarize_plan",
    "format_duration",
    "format_timer_display",
    "pomodoro_preview",
]
