from focus_planner.current_task_page import CurrentTaskPage, describe_progress
from focus_planner.models import EMPTY_STATE, Mode
from focus_planner.repositories import get_task
from focus_planner.pomodoro import PomodoroService
from focus_planner.scheduler import FocusScheduler
from focus_planner.task_store import TaskStore

from conftest import make_task


def _page(qtbot, db, clock):
    store = TaskStore(db)
    store.load()
    service = PomodoroService(FocusScheduler(time_provider=clock))
    page = CurrentTaskPage(service, store)
    qtbot.addWidget(page)
    return page, service, store


def test_describe_progress():
    assert describe_progress(EMPTY_STATE) == "No active task"
    scheduler = FocusScheduler()
    scheduler.start(make_task(1.0))
    assert describe_progress(scheduler.state) == "Session 1 of 3 (0 done)"
    scheduler.skip_current_session()
    assert describe_progress(scheduler.state) == "Break after session 1 of 3 (1 done)"


def test_buttons_follow_mode(qtbot, db, clock):
    page, service, _ = _page(qtbot, db, clock)
    assert not page.btn_play.isEnabled()
    assert not page.btn_complete.isEnabled()

    service.start(make_task(1.0, title="Essay"))
    assert page.task_label.text() == "Essay"
    assert page.timer_label.text() == "25:00"
    assert page.btn_pause.isEnabled()
    assert page.btn_skip_session.isEnabled()
    assert not page.btn_skip_break.isEnabled()

    service.skip_current_session()
    assert page.phase_label.text() == "Break"
    assert page.timer_label.text() == "05:00"
    assert page.btn_skip_break.isEnabled()
    assert not page.btn_skip_session.isEnabled()

    service.pause()
    assert page.btn_play.isEnabled()
    assert not page.btn_pause.isEnabled()


def test_task_combo_lists_pending_tasks(qtbot, db, clock):
    page, _, store = _page(qtbot, db, clock)
    assert not page.task_combo.isEnabled()
    store.create("Essay", 2.0)
    assert page.task_combo.isEnabled()
    assert page.task_combo.itemText(0) == "Essay (2h)"


def test_complete_resets_plan_and_marks_stored_row(qtbot, db, clock):
    page, service, store = _page(qtbot, db, clock)
    task = store.create("Essay", 1.0)
    service.start(task)  # type: ignore[arg-type]
    held = service.state.active_task
    page._on_complete()
    assert service.scheduler.mode is Mode.IDLE
    assert get_task(db, task.id).completed  # type: ignore[union-attr]
    assert held is task
    assert held.completed is False  # type: ignore[union-attr]
    assert store.pending_tasks() == []
    assert not page.btn_complete.isEnabled()
