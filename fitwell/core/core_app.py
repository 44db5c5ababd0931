#!/usr/bin/env python3
"""
Core Application - the operation set exposed to the UI layer

Every method is a pass-through to one repository or metrics call.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from ..analysis.habit_metrics import HabitMetricsCalculator
from ..config import Config
from ..data.database import Database
from ..data.repositories import (
    DailyLogRepository,
    GoalRepository,
    SettingsRepository,
    UserRepository,
    WeightRepository,
)
from ..domain import (
    DailyLog,
    DateLike,
    DayStatus,
    Goal,
    GoalFrequency,
    MonthSummary,
    Settings,
    Streak,
    User,
    WeightEntry,
)

logger = logging.getLogger(__name__)


class FitwellApp:
    """Owns the database and wires repositories and metrics together"""

    def __init__(self, config: Config, database: Optional[Database] = None,
                 clock: Callable[[], date] = date.today):
        self.config = config
        self.db = database or Database(
            config.database_path,
            journal_mode=config.journal_mode,
            echo=config.echo_sql,
        )
        self.users = UserRepository(self.db)
        self.goals = GoalRepository(self.db)
        self.logs = DailyLogRepository(self.db)
        self.weights = WeightRepository(self.db)
        self.settings = SettingsRepository(self.db)
        self.metrics = HabitMetricsCalculator(self.goals, self.logs, self.weights, clock=clock)

    def initialize(self) -> None:
        """Open the database and bring the schema up to date"""
        logger.info("Initializing FitWell...")
        self.db.init()
        logger.info("Application initialization complete")

    def cleanup(self) -> None:
        self.db.close()

    def __enter__(self) -> "FitwellApp":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    # Users

    def get_users(self) -> List[User]:
        return self.users.list_users()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get_user(user_id)

    def create_user(self, first_name: str, last_name: str, avatar_color: Optional[str] = None,
                    birthday: Optional[DateLike] = None, profile_photo: Optional[str] = None) -> User:
        """Create a profile; it starts with a daily Workout goal"""
        return self.users.create_user(
            first_name,
            last_name,
            avatar_color or self.config.default_avatar_color,
            birthday=birthday,
            profile_photo=profile_photo,
        )

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> User:
        return self.users.update_user(user_id, updates)

    def delete_user(self, user_id: str) -> None:
        self.users.delete_user(user_id)

    # Goals

    def get_goals(self, user_id: str) -> List[Goal]:
        return self.goals.list_goals(user_id)

    def create_goal(self, user_id: str, name: str, type: Any, frequency: Any = GoalFrequency.DAILY,
                    target_value: Optional[float] = None, unit: Optional[str] = None,
                    is_active: bool = True) -> Goal:
        return self.goals.create_goal(
            user_id, name, type,
            frequency=frequency,
            target_value=target_value,
            unit=unit,
            is_active=is_active,
        )

    def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Goal:
        return self.goals.update_goal(goal_id, updates)

    def delete_goal(self, goal_id: str) -> None:
        self.goals.delete_goal(goal_id)

    # Daily logs

    def get_daily_logs(self, user_id: str, start_date: DateLike, end_date: DateLike) -> List[DailyLog]:
        return self.logs.list_logs(user_id, start_date, end_date)

    def get_log_for_date(self, user_id: str, goal_id: str, day: DateLike) -> Optional[DailyLog]:
        return self.logs.get_log_for_date(user_id, goal_id, day)

    def toggle_daily_log(self, user_id: str, goal_id: str, day: DateLike) -> DailyLog:
        return self.logs.toggle(user_id, goal_id, day)

    def update_daily_log(self, log_id: str, updates: Dict[str, Any]) -> DailyLog:
        return self.logs.update_log(log_id, updates)

    def set_daily_log(self, user_id: str, goal_id: str, day: DateLike, completed: bool = True,
                      value: Optional[float] = None, notes: Optional[str] = None) -> DailyLog:
        return self.logs.set_log(user_id, goal_id, day, completed=completed, value=value, notes=notes)

    # Weight

    def get_weight_entries(self, user_id: str, start_date: Optional[DateLike] = None,
                           end_date: Optional[DateLike] = None) -> List[WeightEntry]:
        return self.weights.list_entries(user_id, start_date, end_date)

    def add_weight_entry(self, user_id: str, day: DateLike, weight: float, unit: Any,
                         notes: Optional[str] = None) -> WeightEntry:
        return self.weights.add_entry(user_id, day, weight, unit, notes=notes)

    def delete_weight_entry(self, entry_id: str) -> None:
        self.weights.delete_entry(entry_id)

    def get_latest_weight(self, user_id: str) -> Optional[WeightEntry]:
        return self.weights.latest_entry(user_id)

    def get_weight_change(self, user_id: str, days: int) -> Optional[float]:
        return self.metrics.get_weight_change(user_id, days)

    # Computed data

    def get_streak(self, goal_id: str) -> Streak:
        return self.metrics.get_streak(goal_id)

    def get_day_status(self, user_id: str, day: DateLike) -> DayStatus:
        return self.metrics.get_day_status(user_id, day)

    def get_month_summary(self, user_id: str, month: str) -> MonthSummary:
        return self.metrics.get_month_summary(user_id, month)

    # Settings

    def get_settings(self) -> Settings:
        return self.settings.get_settings()

    def update_settings(self, updates: Dict[str, Any]) -> Settings:
        return self.settings.update_settings(updates)
