from __future__ import annotations

"""Qt clock driver for the focus scheduler.

Features:
 - Owns the single 1 Hz QTimer that feeds ``FocusScheduler.tick``.
 - Arms the timer whenever the scheduler is running and disarms it
   synchronously otherwise, so there is never more than one ticker.
 - Re-emits scheduler transitions as Qt signals for the UI.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .models import Mode, Phase, SchedulerState, Task
from .scheduler import REASON_TICK, FocusScheduler, Transition

TICK_INTERVAL_MS = 1000

_log = logging.getLogger(__name__)


class PomodoroService(QObject):
    tick = pyqtSignal(int, str)  # seconds_remaining, phase
    phase_changed = pyqtSignal(str)  # work|break
    mode_changed = pyqtSignal(str)  # Mode value
    state_changed = pyqtSignal()  # any committed transition
    finished = pyqtSignal()  # every session's work is done

    def __init__(self, scheduler: FocusScheduler, parent: QObject | None = None):
        super().__init__(parent)
        self._scheduler = scheduler
        self._timer = QTimer(self)
        self._timer.setInterval(TICK_INTERVAL_MS)
        self._timer.timeout.connect(self._on_tick)
        self._last_mode: Mode = scheduler.mode
        self._last_phase: Phase = scheduler.state.phase

    # Public API -------------------------------------------------------
    @property
    def scheduler(self) -> FocusScheduler:
        return self._scheduler

    @property
    def state(self) -> SchedulerState:
        return self._scheduler.state

    def is_ticking(self) -> bool:
        return self._timer.isActive()

    def restore(self) -> SchedulerState:
        state = self._scheduler.restore()
        self._sync_timer()
        self._emit_mode()
        return state

    def start(self, task: Task) -> bool:
        ok = self._scheduler.start(task)
        if ok:
            self._after_command(None)
        return ok

    def play(self) -> Transition:
        return self._run(self._scheduler.play)

    def pause(self) -> Transition:
        return self._run(self._scheduler.pause)

    def skip_current_session(self) -> Transition:
        return self._run(self._scheduler.skip_current_session)

    def skip_break(self) -> Transition:
        return self._run(self._scheduler.skip_break)

    def complete_task(self) -> Transition:
        return self._run(self._scheduler.complete_task)

    def abandon_task(self) -> Transition:
        return self._run(self._scheduler.abandon_task)

    def clear_plan(self) -> Transition:
        return self._run(self._scheduler.clear_plan)

    def stop(self) -> None:
        """Disarm the clock and dispose of the scheduler."""
        self._timer.stop()
        self._scheduler.close()

    # Internal ---------------------------------------------------------
    def _run(self, fn) -> Transition:
        result = fn()
        self._after_command(result)
        return result

    def _after_command(self, result: Optional[Transition]) -> None:
        # Timer state must follow the scheduler before any signal handler runs.
        self._sync_timer()
        if result is not None and not result.accepted:
            return
        self._emit_state(result)

    def _sync_timer(self) -> None:
        if self._scheduler.state.running:
            if not self._timer.isActive():
                self._timer.start()
        elif self._timer.isActive():
            self._timer.stop()

    def _on_tick(self) -> None:
        if not self._scheduler.state.running:
            self._timer.stop()
            return
        result = self._scheduler.tick()
        self._after_command(result)

    def _emit_state(self, result: Optional[Transition]) -> None:
        state = self._scheduler.state
        if result is None or result.reason != REASON_TICK:
            self.state_changed.emit()
        self.tick.emit(state.seconds_remaining, state.phase.value)
        self._emit_mode()

    def _emit_mode(self) -> None:
        state = self._scheduler.state
        if state.phase is not self._last_phase:
            self._last_phase = state.phase
            self.phase_changed.emit(state.phase.value)
        mode = self._scheduler.mode
        if mode == self._last_mode:
            return
        self._last_mode = mode
        self.mode_changed.emit(mode.value)
        if mode is Mode.ALL_COMPLETE:
            _log.info("Focus plan finished: task=%s", state.active_task.title if state.active_task else None)
            self.finished.emit()


__all__ = ["PomodoroService", "TICK_INTERVAL_MS"]
