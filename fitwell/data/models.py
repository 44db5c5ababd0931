"""
SQLAlchemy models for persistent data storage

Dates are stored as YYYY-MM-DD text and timestamps as ISO 8601 text.
Cascades live in the DDL (ON DELETE CASCADE / SET NULL) and rely on SQLite
foreign-key enforcement being switched on for every connection.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

SETTINGS_ROW_ID = 1


class UserORM(Base):
    """User profile; columns after avatar_color were added by later migrations"""
    __tablename__ = 'users'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    avatar_color = Column(String, nullable=False, server_default=text("'#6366f1'"))
    created_at = Column(String, nullable=False)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    birthday = Column(String, nullable=True)
    profile_photo = Column(Text, nullable=True)  # opaque encoded image


class GoalORM(Base):
    """A tracked habit"""
    __tablename__ = 'goals'

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    frequency = Column(String, nullable=False, server_default=text("'daily'"))
    target_value = Column(Float, nullable=True)
    unit = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, server_default=text("1"))
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    __table_args__ = (
        CheckConstraint("type IN ('workout', 'weight', 'custom')", name='ck_goals_type'),
        CheckConstraint("frequency IN ('daily', 'weekly')", name='ck_goals_frequency'),
        Index('idx_goals_user', 'user_id'),
    )


class DailyLogORM(Base):
    """Completion record for one goal on one day"""
    __tablename__ = 'daily_logs'

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    goal_id = Column(String, ForeignKey('goals.id', ondelete='CASCADE'), nullable=False)
    date = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, server_default=text("0"))
    value = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'goal_id', 'date', name='uq_daily_logs_user_goal_date'),
        Index('idx_daily_logs_user_date', 'user_id', 'date'),
        Index('idx_daily_logs_goal_date', 'goal_id', 'date'),
    )


class WeightEntryORM(Base):
    """Body weight, one entry per user per day"""
    __tablename__ = 'weight_entries'

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    date = Column(String, nullable=False)
    weight = Column(Float, nullable=False)
    unit = Column(String, nullable=False, server_default=text("'lbs'"))
    notes = Column(Text, nullable=True)
    created_at = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'date', name='uq_weight_entries_user_date'),
        CheckConstraint("unit IN ('lbs', 'kg')", name='ck_weight_entries_unit'),
        CheckConstraint("weight > 0", name='ck_weight_entries_weight'),
        Index('idx_weight_entries_user_date', 'user_id', 'date'),
    )


class SettingsORM(Base):
    """Single-row application settings"""
    __tablename__ = 'settings'

    id = Column(Integer, primary_key=True, autoincrement=False)
    last_active_user_id = Column(String, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    weight_unit = Column(String, nullable=False, server_default=text("'lbs'"))
    theme = Column(String, nullable=False, server_default=text("'light'"))
    first_day_of_week = Column(Integer, nullable=False, server_default=text("0"))

    __table_args__ = (
        CheckConstraint(f"id = {SETTINGS_ROW_ID}", name='ck_settings_singleton'),
        CheckConstraint("weight_unit IN ('lbs', 'kg')", name='ck_settings_weight_unit'),
        CheckConstraint("theme IN ('light', 'dark', 'system')", name='ck_settings_theme'),
        CheckConstraint("first_day_of_week IN (0, 1)", name='ck_settings_first_day'),
    )
