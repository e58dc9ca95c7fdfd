from __future__ import annotations

"""Write-through persistence of the scheduler state.

The whole ``SchedulerState`` lives as one JSON document in the ``settings``
table under ``STATE_KEY``. Absence of the row means "no active plan".

Reload rules:
 - A loaded plan is always paused (``running=False``, ``paused_at=now``); the
   countdown is tick based and must never catch up on wall-clock time.
 - Anything malformed is treated as absent and logged, never raised.
"""

import json
import logging
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Optional

from .database_manager import DatabaseManager
from .models import (
    EMPTY_STATE,
    BreakKind,
    Phase,
    SchedulerState,
    SessionDescriptor,
    Task,
    utc_now,
)
from .repositories import delete_setting, get_setting, set_setting

STATE_KEY = "pomodoro.state"
FORMAT_VERSION = 1

_log = logging.getLogger(__name__)


class StateDecodeError(ValueError):
    pass


def _dt_to_iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _iso_to_dt(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise StateDecodeError("timestamp must be an ISO string")
    return datetime.fromisoformat(value)


def state_to_dict(state: SchedulerState) -> dict[str, Any]:
    task = state.active_task
    return {
        "version": FORMAT_VERSION,
        "active_task": asdict(task) if task is not None else None,
        "plan": [
            {
                "session_number": s.session_number,
                "work_seconds": s.work_seconds,
                "break_seconds": s.break_seconds,
                "break_kind": s.break_kind.value,
            }
            for s in state.plan
        ],
        "current_index": state.current_index,
        "phase": state.phase.value,
        "running": state.running,
        "seconds_remaining": state.seconds_remaining,
        "completed_indices": sorted(state.completed_indices),
        "started_at": _dt_to_iso(state.started_at),
        "paused_at": _dt_to_iso(state.paused_at),
    }


def _require_int(data: dict[str, Any], key: str, *, minimum: int = 0) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise StateDecodeError(f"{key} must be an integer >= {minimum}")
    return value


def _decode_session(raw: Any) -> SessionDescriptor:
    if not isinstance(raw, dict):
        raise StateDecodeError("plan entries must be objects")
    session = SessionDescriptor(
        session_number=_require_int(raw, "session_number", minimum=1),
        work_seconds=_require_int(raw, "work_seconds", minimum=1),
        break_seconds=_require_int(raw, "break_seconds"),
        break_kind=BreakKind(raw.get("break_kind")),
    )
    if (session.break_kind is BreakKind.NONE) != (session.break_seconds == 0):
        raise StateDecodeError("break_kind does not match break_seconds")
    return session


def _decode_task(raw: Any) -> Task:
    if not isinstance(raw, dict) or not isinstance(raw.get("title"), str):
        raise StateDecodeError("active_task must be an object with a title")
    known = {k: v for k, v in raw.items() if k in Task.__dataclass_fields__}
    try:
        return Task(**known)
    except TypeError as e:
        raise StateDecodeError(str(e)) from e


def state_from_dict(data: Any) -> SchedulerState:
    """Decode a persisted document; raises ``StateDecodeError`` when invalid."""
    if not isinstance(data, dict):
        raise StateDecodeError("state must be an object")
    if data.get("active_task") is None:
        return EMPTY_STATE
    task = _decode_task(data["active_task"])
    raw_plan = data.get("plan")
    if not isinstance(raw_plan, list) or not raw_plan:
        raise StateDecodeError("plan must be a non-empty list")
    plan = tuple(_decode_session(s) for s in raw_plan)

    current_index = _require_int(data, "current_index")
    if current_index >= len(plan):
        raise StateDecodeError("current_index out of range")
    raw_completed = data.get("completed_indices", [])
    if not isinstance(raw_completed, list):
        raise StateDecodeError("completed_indices must be a list")
    if any(isinstance(i, bool) or not isinstance(i, int) or not 0 <= i < len(plan) for i in raw_completed):
        raise StateDecodeError("completed_indices out of range")
    completed = frozenset(raw_completed)

    return SchedulerState(
        active_task=task,
        plan=plan,
        current_index=current_index,
        phase=Phase(data.get("phase")),
        running=bool(data.get("running", False)),
        seconds_remaining=_require_int(data, "seconds_remaining"),
        completed_indices=completed,
        started_at=_iso_to_dt(data.get("started_at")),
        paused_at=_iso_to_dt(data.get("paused_at")),
    )


class PomodoroStateStore:
    """Persists ``SchedulerState`` in the settings key-value table."""

    def __init__(self, db: DatabaseManager, key: str = STATE_KEY) -> None:
        self._db = db
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def save(self, state: SchedulerState) -> None:
        if state.active_task is None:
            delete_setting(self._db, self._key)
            return
        set_setting(self._db, self._key, json.dumps(state_to_dict(state), ensure_ascii=False))

    def load(self, now: Optional[datetime] = None) -> SchedulerState:
        raw = get_setting(self._db, self._key)
        if raw is None:
            return EMPTY_STATE
        try:
            state = state_from_dict(json.loads(raw))
        except (TypeError, ValueError) as e:
            _log.warning("discarding unreadable pomodoro state: %s", e)
            self.clear()
            return EMPTY_STATE
        if not state.is_active:
            return EMPTY_STATE
        return replace(state, running=False, paused_at=now or utc_now())

    def clear(self) -> None:
        delete_setting(self._db, self._key)


__all__ = [
    "PomodoroStateStore",
    "StateDecodeError",
    "STATE_KEY",
    "state_to_dict",
    "state_from_dict",
]
