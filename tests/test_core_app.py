from __future__ import annotations

from datetime import date

import pytest

from fitwell.config import Config
from fitwell.core.core_app import FitwellApp
from fitwell.errors import DatabaseNotInitializedError, InvalidInputError


def _workout(app, user):
    [goal] = app.get_goals(user.id)
    return goal


def test_operations_fail_before_initialize(tmp_path):
    app = FitwellApp(Config(database_path=str(tmp_path / "fitwell.db")))

    with pytest.raises(DatabaseNotInitializedError):
        app.get_users()


def test_create_user_uses_configured_avatar_color(tmp_path):
    config = Config(database_path=str(tmp_path / "fitwell.db"), default_avatar_color="#00ff00")
    with FitwellApp(config) as app:
        user = app.create_user("Grace", "Hopper")

        assert user.avatar_color == "#00ff00"
        assert app.get_user(user.id) == user


def test_streak_example(app, user):
    goal = _workout(app, user)
    for day in ("2024-06-01", "2024-06-02", "2024-06-03", "2024-06-05"):
        app.toggle_daily_log(user.id, goal.id, day)

    streak = app.get_streak(goal.id)

    assert streak.current_streak == 1
    assert streak.longest_streak == 3
    assert streak.last_completed_date == date(2024, 6, 5)


def test_untoggled_day_drops_out_of_streak(app, user):
    goal = _workout(app, user)
    for day in ("2024-06-03", "2024-06-04", "2024-06-05"):
        app.toggle_daily_log(user.id, goal.id, day)
    app.toggle_daily_log(user.id, goal.id, "2024-06-05")

    streak = app.get_streak(goal.id)

    assert streak.current_streak == 2
    assert streak.last_completed_date == date(2024, 6, 4)


def test_streak_for_unknown_goal_is_zero(app):
    streak = app.get_streak("goal_missing")

    assert (streak.current_streak, streak.longest_streak, streak.last_completed_date) == (0, 0, None)


def test_month_summary_example(app, user):
    goal = _workout(app, user)
    for day in ("2024-06-01", "2024-06-02", "2024-06-03"):
        app.toggle_daily_log(user.id, goal.id, day)
    app.toggle_daily_log(user.id, goal.id, "2024-06-04")
    app.toggle_daily_log(user.id, goal.id, "2024-06-04")

    summary = app.get_month_summary(user.id, "2024-06")

    assert summary.to_dict() == {
        "month": "2024-06",
        "totalDays": 30,
        "completedDays": 3,
        "partialDays": 0,
        "streakDays": 3,
    }


def test_month_summary_judges_history_against_current_goals(app, user):
    workout = _workout(app, user)
    reading = app.create_goal(user.id, "Read", "custom")
    app.toggle_daily_log(user.id, workout.id, "2024-06-01")

    assert app.get_month_summary(user.id, "2024-06").partial_days == 1

    app.update_goal(reading.id, {"is_active": False})
    summary = app.get_month_summary(user.id, "2024-06")

    assert (summary.completed_days, summary.partial_days) == (1, 0)


def test_month_summary_for_unknown_user(app):
    summary = app.get_month_summary("user_missing", "2024-02")

    assert (summary.total_days, summary.completed_days, summary.streak_days) == (29, 0, 0)


def test_month_summary_rejects_bad_month(app, user):
    with pytest.raises(InvalidInputError):
        app.get_month_summary(user.id, "2024/06")


def test_day_status(app, user):
    workout = _workout(app, user)
    reading = app.create_goal(user.id, "Read", "custom")

    app.toggle_daily_log(user.id, workout.id, "2024-06-05")
    status = app.get_day_status(user.id, "2024-06-05")
    assert status.completed_goals == [workout.id]
    assert status.total_goals == 2
    assert not status.is_fully_complete

    app.toggle_daily_log(user.id, reading.id, "2024-06-05")
    assert app.get_day_status(user.id, date(2024, 6, 5)).is_fully_complete

    app.update_goal(reading.id, {"is_active": False})
    app.toggle_daily_log(user.id, reading.id, "2024-06-05")
    status = app.get_day_status(user.id, "2024-06-05")
    assert status.total_goals == 1
    assert status.is_fully_complete


def test_day_status_without_goals(app, user):
    app.delete_goal(_workout(app, user).id)

    status = app.get_day_status(user.id, "2024-06-05")

    assert status.total_goals == 0
    assert not status.is_fully_complete


def test_weight_tracking(app, user):
    app.add_weight_entry(user.id, "2024-05-20", 160, "lbs")
    app.add_weight_entry(user.id, "2024-06-05", 155, "lbs")

    assert app.get_latest_weight(user.id).weight == 155
    assert app.get_weight_change(user.id, 7) == -5
    assert app.get_weight_change(user.id, 30) is None


def test_daily_log_helpers(app, user):
    goal = _workout(app, user)

    log = app.set_daily_log(user.id, goal.id, "2024-06-05", value=30, notes="run")
    assert app.get_log_for_date(user.id, goal.id, "2024-06-05") == log

    updated = app.update_daily_log(log.id, {"completed": False})
    assert app.get_daily_logs(user.id, "2024-06-01", "2024-06-30") == [updated]


def test_delete_user_clears_active_profile(app, user):
    app.update_settings({"last_active_user_id": user.id, "weight_unit": "kg"})

    app.delete_user(user.id)

    settings = app.get_settings()
    assert settings.last_active_user_id is None
    assert settings.to_dict()["weightUnit"] == "kg"
    assert app.get_users() == []
    assert app.get_goals(user.id) == []


def test_data_survives_restart(tmp_path):
    config = Config(database_path=str(tmp_path / "fitwell.db"))
    with FitwellApp(config) as app:
        user = app.create_user("Ada", "Lovelace")
        goal = app.get_goals(user.id)[0]
        log = app.toggle_daily_log(user.id, goal.id, "2024-06-01")

    with FitwellApp(config) as app:
        assert app.get_users() == [user]
        assert app.get_goals(user.id) == [goal]
        assert app.get_log_for_date(user.id, goal.id, "2024-06-01") == log
