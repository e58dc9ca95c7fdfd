from __future__ import annotations

"""Focus-session state machine.

Two layers:
 - ``apply(state, command, now)`` is a pure reducer over a tagged union of
   commands. It never touches Qt, storage or notifications; it returns a
   ``Transition`` describing the new state and which notifications to fire.
 - ``FocusScheduler`` owns the single live ``SchedulerState``. It commits
   accepted transitions, writes them through to the state store and then
   delivers notifications (fire-and-forget).

Rejected commands are never exceptions: they come back with ``accepted=False``
and a reason string, leaving the state untouched.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Protocol, Union

from .models import (
    EMPTY_STATE,
    Mode,
    NotificationKind,
    Phase,
    SchedulerState,
    Task,
    utc_now,
)
from .session_planner import PlannerConfig, plan_sessions

REASON_STARTED = "started"
REASON_TICK = "tick"
REASON_PHASE_COMPLETE = "phase_complete"
REASON_PLAYED = "played"
REASON_PAUSED = "paused"
REASON_SKIPPED = "skipped"
REASON_RESET = "reset"
REASON_INVALID_DURATION = "invalid_duration"
REASON_NO_ACTIVE_PLAN = "no_active_plan"
REASON_NOT_RUNNING = "not_running"
REASON_ALREADY_RUNNING = "already_running"
REASON_ALL_COMPLETE = "all_complete"
REASON_NOT_WORK_PHASE = "not_work_phase"
REASON_NOT_BREAK_PHASE = "not_break_phase"
REASON_NO_NEXT_SESSION = "no_next_session"
REASON_UNSUPPORTED_COMMAND = "unsupported_command"


# --- Commands ---------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class StartPlan:
    task: Task
    config: Optional[PlannerConfig] = None


@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class Play:
    pass


@dataclass(frozen=True, slots=True)
class Pause:
    pass


@dataclass(frozen=True, slots=True)
class SkipSession:
    pass


@dataclass(frozen=True, slots=True)
class SkipBreak:
    pass


@dataclass(frozen=True, slots=True)
class CompleteTask:
    pass


@dataclass(frozen=True, slots=True)
class AbandonTask:
    pass


@dataclass(frozen=True, slots=True)
class ClearPlan:
    pass


Command = Union[StartPlan, Tick, Play, Pause, SkipSession, SkipBreak, CompleteTask, AbandonTask, ClearPlan]


def command_name(command: Command) -> str:
    return type(command).__name__


@dataclass(frozen=True, slots=True)
class Transition:
    """Result envelope returned for every command."""

    command: str
    accepted: bool
    reason: str
    state: SchedulerState
    notifications: tuple[NotificationKind, ...] = ()


def scheduler_mode(state: SchedulerState) -> Mode:
    if not state.is_active:
        return Mode.IDLE
    if state.all_complete:
        return Mode.ALL_COMPLETE
    if state.phase is Phase.BREAK:
        return Mode.BREAK_RUNNING if state.running else Mode.BREAK_PAUSED
    return Mode.WORK_RUNNING if state.running else Mode.WORK_PAUSED


# --- Reducer ----------------------------------------------------------------

def apply(state: SchedulerState, command: Command, now: datetime) -> Transition:
    name = command_name(command)

    def reject(reason: str) -> Transition:
        return Transition(name, False, reason, state)

    if isinstance(command, StartPlan):
        task = command.task
        plan = tuple(plan_sessions(task.duration_hours, command.config))
        if not plan:
            return reject(REASON_INVALID_DURATION)
        new_state = SchedulerState(
            active_task=task,
            plan=plan,
            current_index=0,
            phase=Phase.WORK,
            running=True,
            seconds_remaining=plan[0].work_seconds,
            completed_indices=frozenset(),
            started_at=now,
            paused_at=None,
        )
        return Transition(name, True, REASON_STARTED, new_state)

    if isinstance(command, (CompleteTask, AbandonTask, ClearPlan)):
        if not state.is_active:
            return reject(REASON_NO_ACTIVE_PLAN)
        return Transition(name, True, REASON_RESET, EMPTY_STATE)

    if not state.is_active:
        return reject(REASON_NO_ACTIVE_PLAN)

    if isinstance(command, Tick):
        if not state.running:
            return reject(REASON_NOT_RUNNING)
        remaining = max(0, state.seconds_remaining - 1)
        ticked = replace(state, seconds_remaining=remaining)
        if remaining > 0:
            return Transition(name, True, REASON_TICK, ticked)
        new_state, notifications = _evaluate_phase_end(ticked, now)
        return Transition(name, True, REASON_PHASE_COMPLETE, new_state, notifications)

    if state.all_complete:
        return reject(REASON_ALL_COMPLETE)

    if isinstance(command, Play):
        if state.running:
            return reject(REASON_ALREADY_RUNNING)
        new_state = replace(state, running=True, paused_at=None, started_at=state.started_at or now)
        return Transition(name, True, REASON_PLAYED, new_state)

    if isinstance(command, Pause):
        if not state.running:
            return reject(REASON_NOT_RUNNING)
        return Transition(name, True, REASON_PAUSED, replace(state, running=False, paused_at=now))

    if isinstance(command, SkipSession):
        if state.phase is not Phase.WORK:
            return reject(REASON_NOT_WORK_PHASE)
        new_state, notifications = _skip_session(state, now)
        return Transition(name, True, REASON_SKIPPED, new_state, notifications)

    if isinstance(command, SkipBreak):
        if state.phase is not Phase.BREAK:
            return reject(REASON_NOT_BREAK_PHASE)
        if not state.has_next_session:
            return reject(REASON_NO_NEXT_SESSION)
        return Transition(name, True, REASON_SKIPPED, _advance_paused(state, now))

    return reject(REASON_UNSUPPORTED_COMMAND)


def _advance_paused(state: SchedulerState, now: datetime) -> SchedulerState:
    index = state.current_index + 1
    return replace(
        state,
        current_index=index,
        phase=Phase.WORK,
        running=False,
        seconds_remaining=state.plan[index].work_seconds,
        paused_at=now,
    )


def _finish(state: SchedulerState, now: datetime) -> SchedulerState:
    return replace(state, running=False, paused_at=now)


def _start_break(state: SchedulerState, now: datetime) -> SchedulerState:
    session = state.plan[state.current_index]
    return replace(
        state,
        phase=Phase.BREAK,
        running=True,
        seconds_remaining=session.break_seconds,
        started_at=now,
        paused_at=None,
    )


def _evaluate_phase_end(
    state: SchedulerState, now: datetime
) -> tuple[SchedulerState, tuple[NotificationKind, ...]]:
    if state.phase is Phase.BREAK:
        if state.has_next_session:
            return _advance_paused(state, now), (NotificationKind.BREAK_COMPLETE,)
        return _finish(state, now), (NotificationKind.BREAK_COMPLETE,)

    notifications = [NotificationKind.WORK_SESSION_COMPLETE]
    state = replace(state, completed_indices=state.completed_indices | {state.current_index})
    if not state.has_next_session:
        notifications.append(NotificationKind.TASK_COMPLETE)
        return _finish(state, now), tuple(notifications)
    if state.plan[state.current_index].has_break:
        return _start_break(state, now), tuple(notifications)
    # Work-to-work continuation waits for an explicit play on the next session.
    return _advance_paused(state, now), tuple(notifications)


def _skip_session(
    state: SchedulerState, now: datetime
) -> tuple[SchedulerState, tuple[NotificationKind, ...]]:
    state = replace(state, completed_indices=state.completed_indices | {state.current_index})
    if state.all_complete:
        return _finish(state, now), (NotificationKind.TASK_COMPLETE,)
    if state.plan[state.current_index].has_break:
        return _start_break(state, now), ()
    if state.has_next_session:
        return _advance_paused(state, now), ()
    return _finish(state, now), ()


# --- Owner ------------------------------------------------------------------

class StateStore(Protocol):
    def save(self, state: SchedulerState) -> None: ...

    def load(self, now: Optional[datetime] = None) -> SchedulerState: ...


class NotificationPort(Protocol):
    def request_permission(self) -> bool: ...

    def notify(self, kind: NotificationKind, payload: Optional[Mapping[str, Any]] = None) -> None: ...


TimeProvider = Callable[[], datetime]
Listener = Callable[[Transition], None]


class FocusScheduler:
    """Owns the live scheduler state; the only writer of that state."""

    def __init__(
        self,
        notifier: Optional[NotificationPort] = None,
        store: Optional[StateStore] = None,
        *,
        config: Optional[PlannerConfig] = None,
        time_provider: Optional[TimeProvider] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._notifier = notifier
        self._store = store
        self._config = config
        self._time_provider: TimeProvider = time_provider or utc_now
        self._logger = logger or logging.getLogger(__name__)
        self._state: SchedulerState = EMPTY_STATE
        self._listeners: list[Listener] = []
        self._closed = False

    # --- Properties -----------------------------------------------------
    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def mode(self) -> Mode:
        return scheduler_mode(self._state)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # --- Lifecycle ------------------------------------------------------
    def restore(self) -> SchedulerState:
        """Rehydrate from the store. Restored plans always come back paused."""
        if self._store is None:
            return self._state
        self._state = self._store.load(self._time_provider())
        if self._state.is_active:
            self._logger.info(
                "Focus plan restored: task=%s session=%s/%s remaining=%ss",
                self._state.active_task.title,  # type: ignore[union-attr]
                self._state.current_index + 1,
                len(self._state.plan),
                self._state.seconds_remaining,
            )
        return self._state

    def close(self) -> None:
        self._listeners.clear()
        self._closed = True

    # --- Commands -------------------------------------------------------
    def dispatch(self, command: Command) -> Transition:
        if self._closed:
            raise RuntimeError("FocusScheduler is closed")
        result = apply(self._state, command, self._time_provider())
        if not result.accepted:
            self._logger.debug("Focus command rejected: %s reason=%s", result.command, result.reason)
            return result

        previous = self._state
        self._state = result.state
        if self._store is not None:
            try:
                self._store.save(self._state)
            except Exception:
                self._logger.warning("Focus state save failed", exc_info=True)
        if result.reason != REASON_TICK:
            self._log_transition(previous, result)
        for kind in result.notifications:
            self._notify(kind, previous.active_task)
        for listener in list(self._listeners):
            listener(result)
        return result

    def start(self, task: Task) -> bool:
        result = self.dispatch(StartPlan(task, self._config))
        if not result.accepted:
            self._logger.warning(
                "Cannot schedule task %r: duration_hours=%r", task.title, task.duration_hours
            )
            return False
        self._request_permission()
        return True

    def tick(self) -> Transition:
        return self.dispatch(Tick())

    def play(self) -> Transition:
        return self.dispatch(Play())

    def pause(self) -> Transition:
        return self.dispatch(Pause())

    def skip_current_session(self) -> Transition:
        return self.dispatch(SkipSession())

    def skip_break(self) -> Transition:
        return self.dispatch(SkipBreak())

    def complete_task(self) -> Transition:
        return self.dispatch(CompleteTask())

    def abandon_task(self) -> Transition:
        return self.dispatch(AbandonTask())

    def clear_plan(self) -> Transition:
        return self.dispatch(ClearPlan())

    # --- Internal -------------------------------------------------------
    def _request_permission(self) -> None:
        if self._notifier is None:
            return
        try:
            granted = self._notifier.request_permission()
        except Exception:
            self._logger.warning("Notification permission request failed", exc_info=True)
            return
        if not granted:
            self._logger.info("Notifications unavailable; continuing without them")

    def _notify(self, kind: NotificationKind, task: Optional[Task]) -> None:
        if self._notifier is None:
            return
        payload = {"task_title": task.title} if task is not None else None
        try:
            self._notifier.notify(kind, payload)
        except Exception:
            self._logger.warning("Notification %s failed", kind.value, exc_info=True)

    def _log_transition(self, previous: SchedulerState, result: Transition) -> None:
        state = result.state
        task = state.active_task or previous.active_task
        self._logger.info(
            "Focus %s: task=%s mode=%s session=%s/%s remaining=%ss",
            result.command,
            task.title if task else None,
            scheduler_mode(state).value,
            state.current_index + 1 if state.plan else 0,
            len(state.plan),
            state.seconds_remaining,
        )


__all__ = [
    "Command",
    "StartPlan",
    "Tick",
    "Play",
    "Pause",
    "SkipSession",
    "SkipBreak",
    "CompleteTask",
    "AbandonTask",
    "ClearPlan",
    "Transition",
    "StateStore",
    "NotificationPort",
    "FocusScheduler",
    "apply",
    "scheduler_mode",
    "command_name",
]
