"""
Tests for the habit metrics calculations.

The pure functions are exercised with hand-built domain objects; the
calculator is covered end to end in test_core_app.py.
"""
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from fitwell.analysis.habit_metrics import (
    calculate_day_status,
    calculate_month_summary,
    calculate_streak,
    calculate_weight_change,
    month_bounds,
)
from fitwell.domain import DailyLog, Goal, GoalFrequency, GoalType, WeightEntry, WeightUnit
from fitwell.errors import InvalidInputError

STAMP = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _d(value: str) -> date:
    return date.fromisoformat(value)


def _goal(goal_id: str, is_active: bool = True) -> Goal:
    return Goal(
        id=goal_id, user_id="user_1", name=goal_id, type=GoalType.CUSTOM,
        frequency=GoalFrequency.DAILY, is_active=is_active,
        created_at=STAMP, updated_at=STAMP,
    )


def _log(goal_id: str, day: str, completed: bool = True) -> DailyLog:
    return DailyLog(
        id=f"log_{goal_id}_{day}", user_id="user_1", goal_id=goal_id, date=_d(day),
        completed=completed, created_at=STAMP, updated_at=STAMP,
    )


def _weight(day: str, weight: float) -> WeightEntry:
    return WeightEntry(
        id=f"weight_{day}", user_id="user_1", date=_d(day), weight=weight,
        unit=WeightUnit.LBS, created_at=STAMP,
    )


# ===================================================================
# Streaks
# ===================================================================


class TestCalculateStreak:
    def test_no_completions(self):
        streak = calculate_streak("goal_1", [], _d("2024-06-05"))

        assert streak.current_streak == 0
        assert streak.longest_streak == 0
        assert streak.last_completed_date is None

    def test_gap_breaks_current_but_not_longest(self):
        dates = [_d("2024-06-05"), _d("2024-06-03"), _d("2024-06-02"), _d("2024-06-01")]

        streak = calculate_streak("goal_1", dates, _d("2024-06-05"))

        assert streak.current_streak == 1
        assert streak.longest_streak == 3
        assert streak.last_completed_date == _d("2024-06-05")

    def test_current_streak_anchored_on_yesterday(self):
        dates = [_d("2024-06-04"), _d("2024-06-03"), _d("2024-06-02")]

        streak = calculate_streak("goal_1", dates, _d("2024-06-05"))

        assert streak.current_streak == 3
        assert streak.longest_streak == 3

    def test_missing_more_than_a_day_resets_current(self):
        dates = [_d("2024-06-03"), _d("2024-06-02"), _d("2024-06-01")]

        streak = calculate_streak("goal_1", dates, _d("2024-06-05"))

        assert streak.current_streak == 0
        assert streak.longest_streak == 3

    def test_single_completion(self):
        recent = calculate_streak("goal_1", [_d("2024-06-05")], _d("2024-06-05"))
        old = calculate_streak("goal_1", [_d("2023-01-01")], _d("2024-06-05"))

        assert (recent.current_streak, recent.longest_streak) == (1, 1)
        assert (old.current_streak, old.longest_streak) == (0, 1)

    def test_final_run_counts_towards_longest(self):
        dates = [_d("2024-06-05"), _d("2024-05-10"), _d("2024-05-09"), _d("2024-05-08"), _d("2024-05-07")]

        streak = calculate_streak("goal_1", dates, _d("2024-06-05"))

        assert streak.longest_streak == 4

    def test_run_across_month_boundary(self):
        dates = [_d("2024-03-01"), _d("2024-02-29"), _d("2024-02-28")]

        streak = calculate_streak("goal_1", dates, _d("2024-03-01"))

        assert streak.current_streak == 3

    def test_unordered_input_with_duplicates(self):
        dates = [_d("2024-06-03"), _d("2024-06-05"), _d("2024-06-04"), _d("2024-06-04")]

        streak = calculate_streak("goal_1", dates, _d("2024-06-05"))

        assert (streak.current_streak, streak.longest_streak) == (3, 3)


# ===================================================================
# Day status
# ===================================================================


class TestCalculateDayStatus:
    def test_fully_complete(self):
        goals = [_goal("goal_a"), _goal("goal_b")]
        logs = [_log("goal_a", "2024-06-01"), _log("goal_b", "2024-06-01")]

        status = calculate_day_status(_d("2024-06-01"), logs, goals)

        assert status.completed_goals == ["goal_a", "goal_b"]
        assert status.total_goals == 2
        assert status.is_fully_complete

    def test_partial(self):
        goals = [_goal("goal_a"), _goal("goal_b")]
        logs = [_log("goal_a", "2024-06-01"), _log("goal_b", "2024-06-01", completed=False)]

        status = calculate_day_status(_d("2024-06-01"), logs, goals)

        assert status.completed_goals == ["goal_a"]
        assert not status.is_fully_complete

    def test_logs_for_inactive_goals_are_ignored(self):
        goals = [_goal("goal_a")]
        logs = [_log("goal_a", "2024-06-01"), _log("goal_paused", "2024-06-01")]

        status = calculate_day_status(_d("2024-06-01"), logs, goals)

        assert status.completed_goals == ["goal_a"]
        assert status.is_fully_complete

    def test_no_active_goals_is_never_complete(self):
        status = calculate_day_status(_d("2024-06-01"), [], [])

        assert status.total_goals == 0
        assert not status.is_fully_complete


# ===================================================================
# Month summary
# ===================================================================


class TestMonthSummary:
    def test_single_goal_month(self):
        logs = [
            _log("goal_a", "2024-06-01"),
            _log("goal_a", "2024-06-02"),
            _log("goal_a", "2024-06-03"),
            _log("goal_a", "2024-06-04", completed=False),
        ]

        summary = calculate_month_summary("2024-06", logs, active_goal_count=1)

        assert summary.total_days == 30
        assert summary.completed_days == 3
        assert summary.partial_days == 0
        assert summary.streak_days == 3

    def test_partial_days_with_two_goals(self):
        logs = [
            _log("goal_a", "2024-06-01"),
            _log("goal_b", "2024-06-01"),
            _log("goal_a", "2024-06-02"),
        ]

        summary = calculate_month_summary("2024-06", logs, active_goal_count=2)

        assert (summary.completed_days, summary.partial_days, summary.streak_days) == (1, 1, 3)

    def test_no_active_goals_counts_only_partials(self):
        summary = calculate_month_summary("2024-06", [_log("goal_a", "2024-06-01")], active_goal_count=0)

        assert (summary.completed_days, summary.partial_days) == (0, 1)

    def test_logs_outside_month_are_ignored(self):
        logs = [_log("goal_a", "2024-05-31"), _log("goal_a", "2024-07-01")]

        summary = calculate_month_summary("2024-06", logs, active_goal_count=1)

        assert summary.streak_days == 0

    def test_empty_month(self):
        summary = calculate_month_summary("2023-02", [], active_goal_count=3)

        assert summary.total_days == 28
        assert (summary.completed_days, summary.partial_days, summary.streak_days) == (0, 0, 0)


class TestMonthBounds:
    @pytest.mark.parametrize(
        "month, last_day",
        [("2024-02", 29), ("2023-02", 28), ("2024-04", 30), ("2024-12", 31)],
    )
    def test_last_day(self, month, last_day):
        first, last = month_bounds(month)

        assert first.day == 1
        assert last.day == last_day

    @pytest.mark.parametrize("month", ["2024-13", "2024-00", "2024-6", "June", "", "2024-06-01"])
    def test_malformed_month(self, month):
        with pytest.raises(InvalidInputError):
            month_bounds(month)


# ===================================================================
# Weight change
# ===================================================================


class TestWeightChange:
    def test_change_against_entry_before_cutoff(self):
        entries = [_weight("2024-06-05", 150), _weight("2024-06-01", 152), _weight("2024-05-28", 155)]

        assert calculate_weight_change(entries, 7, _d("2024-06-05")) == -5

    def test_needs_two_entries(self):
        assert calculate_weight_change([_weight("2024-06-05", 150)], 7, _d("2024-06-05")) is None

    def test_needs_an_old_enough_entry(self):
        entries = [_weight("2024-06-05", 150), _weight("2024-06-04", 151)]

        assert calculate_weight_change(entries, 30, _d("2024-06-05")) is None
