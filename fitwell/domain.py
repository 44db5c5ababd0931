#!/usr/bin/env python3
"""
Domain objects shared between the data layer, the metrics engine and callers.

Calendar dates are ``datetime.date`` values, timestamps are timezone-aware
UTC ``datetime`` values. ``to_dict()`` produces the camelCase shape the UI
layer consumes.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import InvalidInputError


class GoalType(str, Enum):
    WORKOUT = "workout"
    WEIGHT = "weight"
    CUSTOM = "custom"


class GoalFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class WeightUnit(str, Enum):
    LBS = "lbs"
    KG = "kg"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class FirstDayOfWeek(int, Enum):
    SUNDAY = 0
    MONDAY = 1


DateLike = Union[date, str]


def new_id(prefix: str) -> str:
    """Opaque identifier prefixed with the entity kind"""
    return f"{prefix}_{uuid.uuid4()}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_date(value: DateLike, field_name: str = "date") -> date:
    """Accept a date or a YYYY-MM-DD string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise InvalidInputError(f"Invalid {field_name}: {value!r} (expected YYYY-MM-DD)")
    raise InvalidInputError(f"Invalid {field_name}: {value!r}")


def coerce_enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise InvalidInputError(f"Invalid {field_name}: {value!r} (expected one of {allowed})")


def _iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class User:
    """A local profile; there is no authentication"""
    id: str
    name: str
    avatar_color: str
    created_at: datetime
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birthday: Optional[date] = None
    profile_photo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "birthday": _iso(self.birthday),
            "profilePhoto": self.profile_photo,
            "avatarColor": self.avatar_color,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class Goal:
    """A recurring habit owned by one user"""
    id: str
    user_id: str
    name: str
    type: GoalType
    frequency: GoalFrequency
    is_active: bool
    created_at: datetime
    updated_at: datetime
    target_value: Optional[float] = None
    unit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "type": self.type.value,
            "frequency": self.frequency.value,
            "targetValue": self.target_value,
            "unit": self.unit,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class DailyLog:
    """One day's completion record for one goal"""
    id: str
    user_id: str
    goal_id: str
    date: date
    completed: bool
    created_at: datetime
    updated_at: datetime
    value: Optional[float] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "goalId": self.goal_id,
            "date": _iso(self.date),
            "completed": self.completed,
            "value": self.value,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class WeightEntry:
    id: str
    user_id: str
    date: date
    weight: float
    unit: WeightUnit
    created_at: datetime
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": _iso(self.date),
            "weight": self.weight,
            "unit": self.unit.value,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class Settings:
    """Application-wide preferences, stored as a single row"""
    last_active_user_id: Optional[str] = None
    weight_unit: WeightUnit = WeightUnit.LBS
    theme: Theme = Theme.LIGHT
    first_day_of_week: FirstDayOfWeek = FirstDayOfWeek.SUNDAY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastActiveUserId": self.last_active_user_id,
            "weightUnit": self.weight_unit.value,
            "theme": self.theme.value,
            "firstDayOfWeek": int(self.first_day_of_week),
        }


# Derived values, never persisted

@dataclass
class Streak:
    goal_id: str
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goalId": self.goal_id,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastCompletedDate": _iso(self.last_completed_date),
        }


@dataclass
class DayStatus:
    date: date
    completed_goals: List[str] = field(default_factory=list)
    total_goals: int = 0
    is_fully_complete: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": _iso(self.date),
            "completedGoals": list(self.completed_goals),
            "totalGoals": self.total_goals,
            "isFullyComplete": self.is_fully_complete,
        }


@dataclass
class MonthSummary:
    month: str  # YYYY-MM
    total_days: int
    completed_days: int = 0
    partial_days: int = 0
    streak_days: int = 0  # completed log count, not a streak length

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "totalDays": self.total_days,
            "completedDays": self.completed_days,
            "partialDays": self.partial_days,
            "streakDays": self.streak_days,
        }
