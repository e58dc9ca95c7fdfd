from dataclasses import replace

from conftest import MemoryStore, RecordingNotifier, make_task
from focus_planner.models import Mode, NotificationKind
from focus_planner.persistence import STATE_KEY, PomodoroStateStore
from focus_planner.pomodoro import TICK_INTERVAL_MS, PomodoroService
from focus_planner.repositories import get_setting
from focus_planner.scheduler import FocusScheduler


def _service(clock, notifier=None, store=None) -> PomodoroService:
    return PomodoroService(FocusScheduler(notifier, store, time_provider=clock))


def test_timer_follows_running_flag(qtbot, clock):
    service = _service(clock)
    assert not service.is_ticking()
    assert service.start(make_task(1.0))
    assert service.is_ticking()
    assert service._timer.interval() == TICK_INTERVAL_MS  # type: ignore[attr-defined]

    service.pause()
    assert not service.is_ticking()
    service.play()
    assert service.is_ticking()
    service.stop()
    assert not service.is_ticking()


def test_invalid_start_keeps_clock_disarmed(qtbot, clock):
    service = _service(clock)
    assert not service.start(make_task(0))
    assert not service.is_ticking()
    assert service.scheduler.mode is Mode.IDLE


def test_ticks_drive_break_and_pause_for_next_session(qtbot, clock):
    notifier = RecordingNotifier()
    service = _service(clock, notifier)
    service.start(make_task(1.0))
    for _ in range(1500):
        service._on_tick()  # type: ignore[attr-defined]
    assert service.scheduler.mode is Mode.BREAK_RUNNING
    assert service.is_ticking()

    with qtbot.waitSignal(service.phase_changed, timeout=1000) as blocker:
        for _ in range(300):
            service._on_tick()  # type: ignore[attr-defined]
    assert blocker.args == ["work"]
    assert service.scheduler.mode is Mode.WORK_PAUSED
    assert not service.is_ticking()
    assert notifier.kinds == [NotificationKind.WORK_SESSION_COMPLETE, NotificationKind.BREAK_COMPLETE]


def test_tick_signal_reports_remaining(qtbot, clock):
    service = _service(clock)
    service.start(make_task(1.0))
    with qtbot.waitSignal(service.tick, timeout=1000) as blocker:
        service._on_tick()  # type: ignore[attr-defined]
    assert blocker.args == [1499, "work"]


def test_stray_tick_while_paused_is_ignored(qtbot, clock):
    service = _service(clock)
    service.start(make_task(1.0))
    service.pause()
    service._timer.start()  # type: ignore[attr-defined]
    service._on_tick()  # type: ignore[attr-defined]
    assert service.state.seconds_remaining == 1500
    assert not service.is_ticking()


def test_finished_emitted_and_clock_stopped(qtbot, clock):
    service = _service(clock)
    service.start(make_task(0.25))
    with qtbot.waitSignal(service.finished, timeout=1000):
        service.skip_current_session()
    assert service.scheduler.mode is Mode.ALL_COMPLETE
    assert not service.is_ticking()
    assert not service.play().accepted
    assert not service.is_ticking()


def test_abandon_disarms_and_clears_slot(qtbot, db, clock):
    service = _service(clock, store=PomodoroStateStore(db))
    service.start(make_task(1.0))
    service._on_tick()  # type: ignore[attr-defined]
    assert get_setting(db, STATE_KEY) is not None
    service.abandon_task()
    assert not service.is_ticking()
    assert get_setting(db, STATE_KEY) is None
    service._on_tick()  # type: ignore[attr-defined]
    assert service.scheduler.mode is Mode.IDLE


def test_restore_never_arms_clock(qtbot, clock):
    seed = FocusScheduler(time_provider=clock)
    seed.start(make_task(1.0))
    # MemoryStore hands back whatever was saved; emulate a running record being reloaded
    store = MemoryStore(replace(seed.state, running=False, paused_at=clock.now))
    service = _service(clock, store=store)
    state = service.restore()
    assert state.is_active
    assert not service.is_ticking()
    assert service.scheduler.mode is Mode.WORK_PAUSED
