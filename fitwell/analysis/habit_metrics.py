#!/usr/bin/env python3
"""
Habit Metrics Calculator - Deterministic streaks and calendar summaries

Everything here is recomputed from the daily-log history on every call;
nothing derived is stored.
"""

import calendar
import logging
import re
from collections import defaultdict
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..domain import DailyLog, DateLike, DayStatus, Goal, MonthSummary, Streak, WeightEntry, coerce_date
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def month_bounds(month: str) -> Tuple[date, date]:
    """First and last calendar day of a YYYY-MM month"""
    match = MONTH_PATTERN.match(month or "")
    if not match:
        raise InvalidInputError(f"Invalid month: {month!r} (expected YYYY-MM)")
    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12 or year < 1:
        raise InvalidInputError(f"Invalid month: {month!r}")
    last_day = calendar.monthrange(year, month_num)[1]
    return date(year, month_num, 1), date(year, month_num, last_day)


def calculate_streak(goal_id: str, completed_dates: Sequence[date], today: date) -> Streak:
    """Current and longest run of consecutive completed days.

    The current streak only counts when the latest completion is today or
    yesterday; it then walks backwards one day at a time. The longest streak
    scans the whole history.
    """
    dates = sorted(set(completed_dates), reverse=True)
    if not dates:
        return Streak(goal_id=goal_id)

    last_completed = dates[0]

    current_streak = 0
    if last_completed in (today, today - ONE_DAY):
        date_set = set(dates)
        check_date = last_completed
        while check_date in date_set:
            current_streak += 1
            check_date -= ONE_DAY

    longest_streak = 0
    run = 1
    for newer, older in zip(dates, dates[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            longest_streak = max(longest_streak, run)
            run = 1
    longest_streak = max(longest_streak, run)

    return Streak(
        goal_id=goal_id,
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_completed_date=last_completed,
    )


def calculate_day_status(day: date, logs: Sequence[DailyLog], active_goals: Sequence[Goal]) -> DayStatus:
    """Which active goals were completed on a day"""
    active_ids = {goal.id for goal in active_goals}
    completed = []
    for log in logs:
        if log.date == day and log.completed and log.goal_id in active_ids and log.goal_id not in completed:
            completed.append(log.goal_id)

    total = len(active_ids)
    return DayStatus(
        date=day,
        completed_goals=completed,
        total_goals=total,
        is_fully_complete=total > 0 and len(completed) == total,
    )


def calculate_month_summary(month: str, logs: Sequence[DailyLog], active_goal_count: int) -> MonthSummary:
    """Fully and partially completed days within a month.

    Days are judged against the number of goals active *now*, not the goals
    that were active on that date.
    """
    first_day, last_day = month_bounds(month)

    completed_by_date: Dict[date, int] = defaultdict(int)
    streak_days = 0
    for log in logs:
        if log.completed and first_day <= log.date <= last_day:
            completed_by_date[log.date] += 1
            streak_days += 1

    completed_days = 0
    partial_days = 0
    for completed_count in completed_by_date.values():
        if active_goal_count > 0 and completed_count == active_goal_count:
            completed_days += 1
        elif completed_count > 0:
            partial_days += 1

    return MonthSummary(
        month=month,
        total_days=last_day.day,
        completed_days=completed_days,
        partial_days=partial_days,
        streak_days=streak_days,
    )


def calculate_weight_change(entries: Sequence[WeightEntry], days: int, today: date) -> Optional[float]:
    """Latest weight minus the newest entry at least ``days`` old"""
    if len(entries) < 2:
        return None

    ordered = sorted(entries, key=lambda entry: entry.date, reverse=True)
    latest = ordered[0]
    cutoff = today - timedelta(days=days)
    baseline = next((entry for entry in ordered if entry.date <= cutoff), None)
    if baseline is None:
        return None
    return latest.weight - baseline.weight


class HabitMetricsCalculator:
    """Reads history through the repositories and applies the pure calculations"""

    def __init__(self, goals, logs, weights, clock: Callable[[], date] = date.today):
        self.goals = goals
        self.logs = logs
        self.weights = weights
        self.clock = clock

    def get_streak(self, goal_id: str) -> Streak:
        dates = self.logs.completed_dates(goal_id)
        streak = calculate_streak(goal_id, dates, self.clock())
        logger.debug(f"Streak for {goal_id}: current={streak.current_streak}, longest={streak.longest_streak}")
        return streak

    def get_day_status(self, user_id: str, day: DateLike) -> DayStatus:
        day = coerce_date(day)
        logs = self.logs.list_logs(user_id, day, day)
        return calculate_day_status(day, logs, self.goals.list_active_goals(user_id))

    def get_month_summary(self, user_id: str, month: str) -> MonthSummary:
        first_day, last_day = month_bounds(month)
        logs = self.logs.list_logs(user_id, first_day, last_day)
        active_goals = self.goals.list_active_goals(user_id)
        return calculate_month_summary(month, logs, len(active_goals))

    def get_weight_change(self, user_id: str, days: int) -> Optional[float]:
        if days < 0:
            raise InvalidInputError("days must not be negative")
        entries: List[WeightEntry] = self.weights.list_entries(user_id)
        return calculate_weight_change(entries, days, self.clock())
