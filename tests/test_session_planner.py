import math

import pytest

from focus_planner.models import BreakKind
from focus_planner.session_planner import (
    PlannerConfig,
    format_duration,
    format_timer_display,
    plan_sessions,
    pomodoro_preview,
    summarize_plan,
)

DURATIONS = [0.1, 0.25, 0.4166, 0.5, 1.0, 1.5, 2.2, 3.33, 4.0, 7.9, 10.0]


def test_one_hour_splits_into_three_sessions():
    plan = plan_sessions(1.0)
    assert [(s.session_number, s.work_seconds, s.break_seconds) for s in plan] == [
        (1, 1500, 300),
        (2, 1500, 300),
        (3, 600, 0),
    ]
    assert [s.break_kind for s in plan] == [BreakKind.SHORT, BreakKind.SHORT, BreakKind.NONE]
    assert [s.has_break for s in plan] == [True, True, False]


def test_long_task_gets_long_break_on_fourth_session():
    plan = plan_sessions(2.2)
    assert len(plan) == 6
    assert plan[3].break_kind is BreakKind.LONG
    assert plan[3].break_seconds == 900
    assert plan[5].work_seconds == 420
    assert plan[5].break_seconds == 0


def test_plan_properties_hold_across_durations():
    for hours in DURATIONS:
        plan = plan_sessions(hours)
        total = round(hours * 3600)
        assert sum(s.work_seconds for s in plan) == total, hours
        assert len(plan) == math.ceil(total / 1500), hours
        assert plan[-1].break_seconds == 0
        assert plan[-1].break_kind is BreakKind.NONE
        for s in plan[:-1]:
            assert s.has_break
            expected = BreakKind.LONG if s.session_number % 4 == 0 else BreakKind.SHORT
            assert s.break_kind is expected, (hours, s)
            assert 0 < s.work_seconds <= 1500


def test_exact_multiple_has_no_short_remainder():
    plan = plan_sessions(1500 * 4 / 3600)
    assert [s.work_seconds for s in plan] == [1500] * 4
    # the 4th session is last, so it carries no long break
    assert plan[-1].break_kind is BreakKind.NONE


@pytest.mark.parametrize("hours", [0, -1, None, float("nan"), float("inf"), "2", True])
def test_invalid_durations_give_empty_plan(hours):
    assert plan_sessions(hours) == []


def test_custom_config_changes_unit_and_cadence():
    cfg = PlannerConfig(work_minutes=50, short_break_minutes=10, long_break_minutes=30, cycles_before_long_break=2)
    plan = plan_sessions(3.0, cfg)
    assert [s.work_seconds for s in plan] == [3000, 3000, 3000, 1800]
    assert [s.break_seconds for s in plan] == [600, 1800, 600, 0]


def test_summary_totals_and_warning():
    summary = summarize_plan(1.0)
    assert summary.session_count == 3
    assert summary.total_work_seconds == 3600
    assert summary.total_break_seconds == 600
    assert summary.estimated_completion_seconds == 4200
    assert summary.warning is None

    long_task = summarize_plan(5.0)
    assert long_task.warning is not None
    assert "5h" in long_task.warning

    empty = summarize_plan(0)
    assert empty.session_count == 0
    assert empty.warning is None


def test_format_helpers():
    assert format_duration(45) == "45m"
    assert format_duration(120) == "2h"
    assert format_duration(90) == "1h 30m"
    assert format_timer_display(1500) == "25:00"
    assert format_timer_display(65) == "01:05"
    assert format_timer_display(3600) == "60:00"
    assert format_timer_display(-3) == "00:00"


def test_preview_text():
    assert pomodoro_preview(0) == ""
    assert pomodoro_preview(0.25) == "0.25h task = 1 session (15m)"
    assert pomodoro_preview(2) == "2h task = 5 × 25min sessions (2h 30m total)"


def test_zero_short_break_plans_sessions_without_break():
    plan = plan_sessions(1.0, PlannerConfig(short_break_minutes=0))
    assert [(s.break_seconds, s.break_kind) for s in plan] == [
        (0, BreakKind.NONE),
        (0, BreakKind.NONE),
        (0, BreakKind.NONE),
    ]
    assert not any(s.has_break for s in plan)


def test_zero_long_break_marks_long_slot_as_none():
    plan = plan_sessions(2.0, PlannerConfig(long_break_minutes=0))
    assert plan[3].break_seconds == 0
    assert plan[3].break_kind is BreakKind.NONE
    assert plan[0].break_kind is BreakKind.SHORT


@pytest.mark.parametrize(
    "changes",
    [
        {"work_minutes": 0},
        {"work_minutes": -5},
        {"short_break_minutes": -1},
        {"long_break_minutes": -1},
        {"cycles_before_long_break": 0},
    ],
)
def test_invalid_config_raises(changes):
    with pytest.raises(ValueError):
        PlannerConfig(**changes)
