from __future__ import annotations

"""Current task page: live focus countdown, session progress and controls."""

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QComboBox,
    QMessageBox,
    QLineEdit,
    QDoubleSpinBox,
)

from .models import Mode, Phase, SchedulerState
from .pomodoro import PomodoroService
from .session_planner import format_timer_display, pomodoro_preview
from .task_store import TaskStore, MAX_QUICK_HOURS, new_quick_task


def describe_progress(state: SchedulerState) -> str:
    if not state.is_active:
        return "No active task"
    total = len(state.plan)
    done = len(state.completed_indices)
    if state.all_complete:
        return f"All {total} sessions complete"
    label = "Break after session" if state.phase is Phase.BREAK else "Session"
    return f"{label} {state.current_index + 1} of {total} ({done} done)"


class CurrentTaskPage(QWidget):
    def __init__(self, pomodoro: PomodoroService, task_store: TaskStore):  # noqa: D401
        super().__init__()
        self._pomo = pomodoro
        self._store = task_store

        self.task_combo = QComboBox()
        self._store.changed.connect(self.refresh_tasks)
        self.refresh_tasks()
        self.task_combo.currentIndexChanged.connect(self._persist_selection)
        self.btn_start = QPushButton("Start Focus")

        self.quick_title = QLineEdit()
        self.quick_title.setPlaceholderText("Quick Focus Session")
        self.quick_hours = QDoubleSpinBox()
        self.quick_hours.setRange(0.1, MAX_QUICK_HOURS)
        self.quick_hours.setSingleStep(0.25)
        self.quick_hours.setValue(1.0)
        self.quick_hours.setSuffix(" h")
        self.quick_preview = QLabel(pomodoro_preview(1.0))
        self.btn_quick = QPushButton("Quick Timer")

        self.task_label = QLabel("No active task")
        self.task_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.phase_label = QLabel("")
        self.phase_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.timer_label = QLabel("00:00")
        self.timer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        font = self.timer_label.font()
        font.setPointSize(32)
        self.timer_label.setFont(font)
        self.progress_label = QLabel("")
        self.progress_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self.btn_play = QPushButton("Play")
        self.btn_pause = QPushButton("Pause")
        self.btn_skip_session = QPushButton("Skip Session")
        self.btn_skip_break = QPushButton("Skip Break")
        self.btn_complete = QPushButton("Complete Task")
        self.btn_abandon = QPushButton("Abandon")

        start_row = QHBoxLayout()
        start_row.addWidget(QLabel("Task:"))
        start_row.addWidget(self.task_combo, 1)
        start_row.addWidget(self.btn_start)

        quick_row = QHBoxLayout()
        quick_row.addWidget(self.quick_title, 1)
        quick_row.addWidget(self.quick_hours)
        quick_row.addWidget(self.btn_quick)

        btn_row = QHBoxLayout()
        for b in (self.btn_play, self.btn_pause, self.btn_skip_session, self.btn_skip_break):
            btn_row.addWidget(b)
        end_row = QHBoxLayout()
        end_row.addWidget(self.btn_complete)
        end_row.addWidget(self.btn_abandon)

        layout = QVBoxLayout(self)
        layout.addLayout(start_row)
        layout.addLayout(quick_row)
        layout.addWidget(self.quick_preview)
        layout.addWidget(self.task_label)
        layout.addWidget(self.phase_label)
        layout.addWidget(self.timer_label)
        layout.addWidget(self.progress_label)
        layout.addLayout(btn_row)
        layout.addLayout(end_row)
        layout.addStretch(1)

        # Wire signals
        self.btn_start.clicked.connect(self._on_start)
        self.btn_quick.clicked.connect(self._on_quick)
        self.quick_hours.valueChanged.connect(lambda v: self.quick_preview.setText(pomodoro_preview(v)))
        self.btn_play.clicked.connect(self._pomo.play)
        self.btn_pause.clicked.connect(self._pomo.pause)
        self.btn_skip_session.clicked.connect(self._pomo.skip_current_session)
        self.btn_skip_break.clicked.connect(self._pomo.skip_break)
        self.btn_complete.clicked.connect(self._on_complete)
        self.btn_abandon.clicked.connect(self._on_abandon)
        self._pomo.tick.connect(self._on_tick)
        self._pomo.state_changed.connect(self.refresh_state)
        self._pomo.mode_changed.connect(lambda _m: self.refresh_state())
        self.refresh_state()

    # --- Task list ------------------------------------------------------
    def refresh_tasks(self) -> None:
        sel = self._store.get_selected_task_id()
        self.task_combo.blockSignals(True)
        self.task_combo.clear()
        tasks = self._store.pending_tasks()
        if not tasks:
            self.task_combo.addItem("No pending tasks", -1)
            self.task_combo.setEnabled(False)
        else:
            for t in tasks:
                self.task_combo.addItem(f"{t.title} ({t.duration_hours:g}h)", t.id)
            self.task_combo.setEnabled(True)
            if sel is not None:
                idx = self.task_combo.findData(sel)
                if idx >= 0:
                    self.task_combo.setCurrentIndex(idx)
        self.task_combo.blockSignals(False)

    def _persist_selection(self) -> None:  # pragma: no cover trivial
        task_id = self.task_combo.currentData()
        self._store.set_selected_task_id(None if task_id in (None, -1) else int(task_id))

    # --- Button handlers ------------------------------------------------
    def _confirm_replace(self) -> bool:  # pragma: no cover UI
        if not self._pomo.state.is_active:
            return True
        answer = QMessageBox.question(
            self, "Replace Plan", "A focus plan is already active. Replace it with a new one?"
        )
        return answer == QMessageBox.StandardButton.Yes

    def _on_start(self) -> None:  # pragma: no cover UI glue
        task_id = self.task_combo.currentData()
        task = next((t for t in self._store.tasks() if t.id == task_id), None)
        if task is None:
            QMessageBox.information(self, "Task Required", "Please create/select a task first.")
            return
        if not self._confirm_replace():
            return
        if not self._pomo.start(task):
            QMessageBox.warning(self, "Cannot Schedule", "This task has no valid duration.")

    def _on_quick(self) -> None:  # pragma: no cover UI glue
        try:
            task = new_quick_task(self.quick_hours.value(), self.quick_title.text())
        except ValueError as e:
            QMessageBox.warning(self, "Quick Timer", str(e))
            return
        if self._confirm_replace():
            self._pomo.start(task)

    def _on_complete(self) -> None:
        task = self._pomo.state.active_task
        if task is None:
            return
        self._pomo.complete_task()
        self._store.mark_completed(task)

    def _on_abandon(self) -> None:  # pragma: no cover UI glue
        if not self._pomo.state.is_active:
            return
        answer = QMessageBox.question(self, "Abandon Task", "Abandon this focus plan? Progress will be lost.")
        if answer == QMessageBox.StandardButton.Yes:
            self._pomo.abandon_task()

    # --- Service callbacks ---------------------------------------------
    def _on_tick(self, remaining: int, _phase: str) -> None:
        self.timer_label.setText(format_timer_display(remaining))

    def refresh_state(self) -> None:
        state = self._pomo.state
        mode = self._pomo.scheduler.mode
        self.task_label.setText(state.active_task.title if state.active_task else "No active task")
        self.phase_label.setText(
            "" if mode is Mode.IDLE else ("Break" if state.phase is Phase.BREAK else "Focus")
        )
        self.timer_label.setText(format_timer_display(state.seconds_remaining))
        self.progress_label.setText(describe_progress(state))

        active = mode is not Mode.IDLE
        finished = mode is Mode.ALL_COMPLETE
        self.btn_play.setEnabled(mode in (Mode.WORK_PAUSED, Mode.BREAK_PAUSED))
        self.btn_pause.setEnabled(mode in (Mode.WORK_RUNNING, Mode.BREAK_RUNNING))
        self.btn_skip_session.setEnabled(mode in (Mode.WORK_RUNNING, Mode.WORK_PAUSED))
        self.btn_skip_break.setEnabled(
            mode in (Mode.BREAK_RUNNING, Mode.BREAK_PAUSED) and state.has_next_session
        )
        self.btn_complete.setEnabled(active)
        self.btn_abandon.setEnabled(active and not finished)


__all__ = ["CurrentTaskPage", "describe_progress"]
