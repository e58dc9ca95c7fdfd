from __future__ import annotations

import sys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from PyQt6.QtWidgets import QApplication, QMainWindow

from .database_manager import DBConfig, DatabaseManager
from .current_task_page import CurrentTaskPage
from .task_store import TaskStore
from .notifications import TrayNotifier
from .persistence import PomodoroStateStore
from .pomodoro import PomodoroService
from .scheduler import FocusScheduler
from .logging_setup import configure_logging, parse_level


APP_NAME = "Focus Planner"
DATA_DIR_ENV = "FOCUS_PLANNER_DATA_DIR"
LOG_LEVEL_ENV = "FOCUS_PLANNER_LOG_LEVEL"


@dataclass(slots=True)
class AppState:
    db_path: Path
    db: DatabaseManager
    task_store: TaskStore
    notifier: TrayNotifier
    scheduler: FocusScheduler
    pomodoro: PomodoroService


def resolve_data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parent.parent.parent / "data"


def get_app_state() -> AppState:  # pragma: no cover - wiring
    data_dir = resolve_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    # Logging first
    configure_logging(data_dir, parse_level(os.environ.get(LOG_LEVEL_ENV)))
    db_path = data_dir / "focus_planner.sqlite"
    db = DatabaseManager(DBConfig(path=db_path))
    db.init_db()
    task_store = TaskStore(db); task_store.load()
    notifier = TrayNotifier(db)
    scheduler = FocusScheduler(notifier, PomodoroStateStore(db))
    pomodoro = PomodoroService(scheduler)
    restored = pomodoro.restore()
    logging.getLogger(__name__).info(
        "app_state_created", extra={"_json_db": str(db_path), "_json_restored": restored.is_active}
    )
    return AppState(
        db_path=db_path,
        db=db,
        task_store=task_store,
        notifier=notifier,
        scheduler=scheduler,
        pomodoro=pomodoro,
    )


class MainWindow(QMainWindow):  # pragma: no cover - UI
    def __init__(self, state: AppState) -> None:  # noqa: D401
        super().__init__()
        self.state = state
        self.setWindowTitle(APP_NAME)
        self.resize(640, 480)
        self.setCentralWidget(CurrentTaskPage(state.pomodoro, state.task_store))
        if state.scheduler.state.is_active:
            # Restored plan: make sure the tray exists before the next transition.
            state.notifier.request_permission()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.state.pomodoro.stop()
        self.state.db.close()
        super().closeEvent(event)


def run(argv: Optional[list[str]] = None) -> int:  # pragma: no cover
    if argv is None:
        argv = sys.argv
    app = QApplication(argv)
    state = get_app_state()
    window = MainWindow(state)
    window.show()
    return app.exec()


def main() -> None:  # pragma: no cover
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main()
