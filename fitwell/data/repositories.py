"""
Repositories mapping stored rows to domain objects

Each public method is one transaction. Patches are dicts keyed by the
snake_case field names of the domain objects; a key present with ``None``
clears a nullable column.
"""

import logging
import math
from contextlib import contextmanager
from datetime import date, datetime, timezone
from numbers import Real
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain import (
    DailyLog,
    DateLike,
    FirstDayOfWeek,
    Goal,
    GoalFrequency,
    GoalType,
    Settings,
    Theme,
    User,
    WeightEntry,
    WeightUnit,
    coerce_date,
    coerce_enum,
    new_id,
    utc_now,
)
from ..errors import IntegrityViolationError, InvalidInputError, RecordNotFoundError
from .database import Database
from .models import SETTINGS_ROW_ID, DailyLogORM, GoalORM, SettingsORM, UserORM, WeightEntryORM

logger = logging.getLogger(__name__)

DEFAULT_GOAL_NAME = "Workout"


def _parse_timestamp(value: str) -> datetime:
    # Rows written by SQLite's datetime('now') have no offset and are UTC;
    # JavaScript's toISOString() ends in Z, which fromisoformat rejects before 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _check_patch(updates: Dict[str, Any], allowed: Iterable[str], kind: str) -> Dict[str, Any]:
    if updates is None:
        updates = {}
    unknown = sorted(set(updates) - set(allowed))
    if unknown:
        raise InvalidInputError(f"Unknown {kind} fields: {', '.join(unknown)}")
    return dict(updates)


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field_name} must be a non-empty string")
    return value


def _optional_number(value: Any, field_name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(f"{field_name} must be a number")
    if not math.isfinite(value):
        raise InvalidInputError(f"{field_name} must be a finite number")
    return float(value)


def _display_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()


class BaseRepository:
    """Shared session handling"""

    def __init__(self, db: Database):
        self.db = db

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.db.session_scope() as session:
                yield session
        except IntegrityError as e:
            logger.error(f"{type(self).__name__}: store rejected write: {e.orig}")
            raise IntegrityViolationError(str(e.orig)) from e


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def user_from_row(row: UserORM) -> User:
    return User(
        id=row.id,
        name=row.name,
        first_name=row.first_name,
        last_name=row.last_name,
        birthday=_parse_date(row.birthday),
        profile_photo=row.profile_photo,
        avatar_color=row.avatar_color,
        created_at=_parse_timestamp(row.created_at),
    )


class UserRepository(BaseRepository):
    """Profiles; creating one also creates its default goal"""

    UPDATABLE = ('name', 'first_name', 'last_name', 'birthday', 'profile_photo', 'avatar_color')

    def list_users(self) -> List[User]:
        with self._session() as session:
            rows = session.scalars(select(UserORM).order_by(UserORM.created_at)).all()
            return [user_from_row(row) for row in rows]

    def get_user(self, user_id: str) -> Optional[User]:
        with self._session() as session:
            row = session.get(UserORM, user_id)
            return user_from_row(row) if row else None

    def create_user(self, first_name: str, last_name: str, avatar_color: str,
                    birthday: Optional[DateLike] = None,
                    profile_photo: Optional[str] = None) -> User:
        """Create a profile and its daily Workout goal in one transaction"""
        first_name = first_name or ""
        last_name = last_name or ""
        avatar_color = _require_text(avatar_color, "avatar_color")
        birthday_value = coerce_date(birthday, "birthday").isoformat() if birthday is not None else None
        now = utc_now().isoformat()

        row = UserORM(
            id=new_id("user"),
            name=_display_name(first_name, last_name),
            first_name=first_name,
            last_name=last_name,
            birthday=birthday_value,
            profile_photo=profile_photo,
            avatar_color=avatar_color,
            created_at=now,
        )
        with self._session() as session:
            session.add(row)
            session.flush()
            session.add(GoalORM(
                id=new_id("goal"),
                user_id=row.id,
                name=DEFAULT_GOAL_NAME,
                type=GoalType.WORKOUT.value,
                frequency=GoalFrequency.DAILY.value,
                is_active=True,
                created_at=now,
                updated_at=now,
            ))
            user = user_from_row(row)

        logger.info(f"Created user {user.id} ({user.name})")
        return user

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> User:
        """Patch a profile; an empty patch is rejected"""
        updates = _check_patch(updates, self.UPDATABLE, "user")
        if not updates:
            raise InvalidInputError("No updates provided")

        if 'name' in updates and not isinstance(updates['name'], str):
            raise InvalidInputError("name must be a string")
        if 'avatar_color' in updates:
            _require_text(updates['avatar_color'], "avatar_color")
        if updates.get('birthday') is not None:
            updates['birthday'] = coerce_date(updates['birthday'], "birthday").isoformat()

        with self._session() as session:
            row = session.get(UserORM, user_id)
            if row is None:
                raise RecordNotFoundError("User", user_id)

            names_changed = 'first_name' in updates or 'last_name' in updates
            for key, value in updates.items():
                setattr(row, key, value)

            if names_changed and 'name' not in updates:
                row.name = _display_name(row.first_name, row.last_name)

            user = user_from_row(row)

        logger.debug(f"Updated user {user_id}: {sorted(updates)}")
        return user

    def delete_user(self, user_id: str) -> None:
        """Delete a profile; goals, logs and weight entries go with it"""
        with self._session() as session:
            result = session.execute(delete(UserORM).where(UserORM.id == user_id))
        logger.info(f"Deleted user {user_id} ({result.rowcount} row)")


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

def goal_from_row(row: GoalORM) -> Goal:
    return Goal(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        type=GoalType(row.type),
        frequency=GoalFrequency(row.frequency),
        target_value=row.target_value,
        unit=row.unit,
        is_active=bool(row.is_active),
        created_at=_parse_timestamp(row.created_at),
        updated_at=_parse_timestamp(row.updated_at),
    )


class GoalRepository(BaseRepository):
    """Goals; an empty patch only refreshes updated_at"""

    UPDATABLE = ('name', 'type', 'frequency', 'target_value', 'unit', 'is_active')

    def list_goals(self, user_id: str) -> List[Goal]:
        with self._session() as session:
            rows = session.scalars(
                select(GoalORM).where(GoalORM.user_id == user_id).order_by(GoalORM.created_at)
            ).all()
            return [goal_from_row(row) for row in rows]

    def list_active_goals(self, user_id: str) -> List[Goal]:
        return [goal for goal in self.list_goals(user_id) if goal.is_active]

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        with self._session() as session:
            row = session.get(GoalORM, goal_id)
            return goal_from_row(row) if row else None

    def create_goal(self, user_id: str, name: str, type: Any,
                    frequency: Any = GoalFrequency.DAILY,
                    target_value: Optional[float] = None,
                    unit: Optional[str] = None,
                    is_active: bool = True) -> Goal:
        now = utc_now().isoformat()
        row = GoalORM(
            id=new_id("goal"),
            user_id=user_id,
            name=_require_text(name, "name"),
            type=coerce_enum(GoalType, type, "goal type").value,
            frequency=coerce_enum(GoalFrequency, frequency, "goal frequency").value,
            target_value=_optional_number(target_value, "target_value"),
            unit=unit,
            is_active=bool(is_active),
            created_at=now,
            updated_at=now,
        )
        with self._session() as session:
            session.add(row)
            session.flush()
            goal = goal_from_row(row)

        logger.debug(f"Created goal {goal.id} for user {user_id}")
        return goal

    def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Goal:
        updates = _check_patch(updates, self.UPDATABLE, "goal")

        if 'name' in updates:
            _require_text(updates['name'], "name")
        if 'type' in updates:
            updates['type'] = coerce_enum(GoalType, updates['type'], "goal type").value
        if 'frequency' in updates:
            updates['frequency'] = coerce_enum(GoalFrequency, updates['frequency'], "goal frequency").value
        if 'target_value' in updates:
            updates['target_value'] = _optional_number(updates['target_value'], "target_value")
        if 'is_active' in updates:
            if updates['is_active'] is None:
                raise InvalidInputError("is_active cannot be cleared")
            updates['is_active'] = bool(updates['is_active'])

        with self._session() as session:
            row = session.get(GoalORM, goal_id)
            if row is None:
                raise RecordNotFoundError("Goal", goal_id)
            for key, value in updates.items():
                setattr(row, key, value)
            row.updated_at = utc_now().isoformat()
            session.flush()
            goal = goal_from_row(row)

        logger.debug(f"Updated goal {goal_id}: {sorted(updates)}")
        return goal

    def delete_goal(self, goal_id: str) -> None:
        """Delete a goal together with its daily logs"""
        with self._session() as session:
            session.execute(delete(GoalORM).where(GoalORM.id == goal_id))
        logger.debug(f"Deleted goal {goal_id}")


# ---------------------------------------------------------------------------
# Daily logs
# ---------------------------------------------------------------------------

def log_from_row(row: DailyLogORM) -> DailyLog:
    return DailyLog(
        id=row.id,
        user_id=row.user_id,
        goal_id=row.goal_id,
        date=date.fromisoformat(row.date),
        completed=bool(row.completed),
        value=row.value,
        notes=row.notes,
        created_at=_parse_timestamp(row.created_at),
        updated_at=_parse_timestamp(row.updated_at),
    )


class DailyLogRepository(BaseRepository):
    """At most one log per (user, goal, date); writes update in place"""

    UPDATABLE = ('completed', 'value', 'notes')

    def list_logs(self, user_id: str, start_date: DateLike, end_date: DateLike) -> List[DailyLog]:
        """Logs with start_date <= date <= end_date, newest first"""
        start = coerce_date(start_date, "start_date").isoformat()
        end = coerce_date(end_date, "end_date").isoformat()
        with self._session() as session:
            rows = session.scalars(
                select(DailyLogORM)
                .where(DailyLogORM.user_id == user_id,
                       DailyLogORM.date >= start,
                       DailyLogORM.date <= end)
                .order_by(DailyLogORM.date.desc(), DailyLogORM.created_at)
            ).all()
            return [log_from_row(row) for row in rows]

    def get_log_for_date(self, user_id: str, goal_id: str, day: DateLike) -> Optional[DailyLog]:
        with self._session() as session:
            row = self._find(session, user_id, goal_id, coerce_date(day).isoformat())
            return log_from_row(row) if row else None

    @staticmethod
    def _find(session: Session, user_id: str, goal_id: str, day: str) -> Optional[DailyLogORM]:
        return session.scalars(
            select(DailyLogORM).where(
                DailyLogORM.user_id == user_id,
                DailyLogORM.goal_id == goal_id,
                DailyLogORM.date == day,
            )
        ).first()

    def toggle(self, user_id: str, goal_id: str, day: DateLike) -> DailyLog:
        """Flip an existing log, or create one marked completed"""
        day_value = coerce_date(day).isoformat()
        now = utc_now().isoformat()
        with self._session() as session:
            row = self._find(session, user_id, goal_id, day_value)
            if row is not None:
                row.completed = not row.completed
                row.updated_at = now
            else:
                row = DailyLogORM(
                    id=new_id("log"),
                    user_id=user_id,
                    goal_id=goal_id,
                    date=day_value,
                    completed=True,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
            session.flush()
            log = log_from_row(row)

        logger.debug(f"Toggled goal {goal_id} on {day_value}: completed={log.completed}")
        return log

    def set_log(self, user_id: str, goal_id: str, day: DateLike, completed: bool = True,
                value: Optional[float] = None, notes: Optional[str] = None) -> DailyLog:
        """Write a log for the triple, replacing the fields of an existing one"""
        day_value = coerce_date(day).isoformat()
        now = utc_now().isoformat()
        stmt = sqlite_insert(DailyLogORM).values(
            id=new_id("log"),
            user_id=user_id,
            goal_id=goal_id,
            date=day_value,
            completed=bool(completed),
            value=_optional_number(value, "value"),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=['user_id', 'goal_id', 'date'],
            set_={
                'completed': stmt.excluded.completed,
                'value': stmt.excluded.value,
                'notes': stmt.excluded.notes,
                'updated_at': stmt.excluded.updated_at,
            },
        )
        with self._session() as session:
            session.execute(stmt)
            return log_from_row(self._find(session, user_id, goal_id, day_value))

    def update_log(self, log_id: str, updates: Dict[str, Any]) -> DailyLog:
        """Patch completed/value/notes; an empty patch only refreshes updated_at"""
        updates = _check_patch(updates, self.UPDATABLE, "daily log")
        if 'completed' in updates:
            if updates['completed'] is None:
                raise InvalidInputError("completed cannot be cleared")
            updates['completed'] = bool(updates['completed'])
        if 'value' in updates:
            updates['value'] = _optional_number(updates['value'], "value")

        with self._session() as session:
            row = session.get(DailyLogORM, log_id)
            if row is None:
                raise RecordNotFoundError("DailyLog", log_id)
            for key, value in updates.items():
                setattr(row, key, value)
            row.updated_at = utc_now().isoformat()
            session.flush()
            return log_from_row(row)

    def completed_dates(self, goal_id: str) -> List[date]:
        """Distinct dates on which the goal was completed, newest first"""
        with self._session() as session:
            values = session.scalars(
                select(DailyLogORM.date)
                .where(DailyLogORM.goal_id == goal_id, DailyLogORM.completed.is_(True))
                .distinct()
                .order_by(DailyLogORM.date.desc())
            ).all()
        return [date.fromisoformat(value) for value in values]


# ---------------------------------------------------------------------------
# Weight entries
# ---------------------------------------------------------------------------

def weight_from_row(row: WeightEntryORM) -> WeightEntry:
    return WeightEntry(
        id=row.id,
        user_id=row.user_id,
        date=date.fromisoformat(row.date),
        weight=row.weight,
        unit=WeightUnit(row.unit),
        notes=row.notes,
        created_at=_parse_timestamp(row.created_at),
    )


class WeightRepository(BaseRepository):
    """One weight entry per user per day; adding again replaces it"""

    def list_entries(self, user_id: str, start_date: Optional[DateLike] = None,
                     end_date: Optional[DateLike] = None) -> List[WeightEntry]:
        query = select(WeightEntryORM).where(WeightEntryORM.user_id == user_id)
        if start_date is not None:
            query = query.where(WeightEntryORM.date >= coerce_date(start_date, "start_date").isoformat())
        if end_date is not None:
            query = query.where(WeightEntryORM.date <= coerce_date(end_date, "end_date").isoformat())
        query = query.order_by(WeightEntryORM.date.desc())

        with self._session() as session:
            return [weight_from_row(row) for row in session.scalars(query).all()]

    def latest_entry(self, user_id: str) -> Optional[WeightEntry]:
        with self._session() as session:
            row = session.scalars(
                select(WeightEntryORM)
                .where(WeightEntryORM.user_id == user_id)
                .order_by(WeightEntryORM.date.desc())
                .limit(1)
            ).first()
            return weight_from_row(row) if row else None

    def add_entry(self, user_id: str, day: DateLike, weight: float, unit: Any,
                  notes: Optional[str] = None) -> WeightEntry:
        """Insert, or replace the entry already stored for that user and date"""
        weight_value = _optional_number(weight, "weight")
        if weight_value is None or weight_value <= 0:
            raise InvalidInputError("weight must be a positive number")

        row = {
            'id': new_id("weight"),
            'user_id': user_id,
            'date': coerce_date(day).isoformat(),
            'weight': weight_value,
            'unit': coerce_enum(WeightUnit, unit, "weight unit").value,
            'notes': notes,
            'created_at': utc_now().isoformat(),
        }
        stmt = sqlite_insert(WeightEntryORM).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=['user_id', 'date'],
            set_={key: stmt.excluded[key] for key in ('id', 'weight', 'unit', 'notes', 'created_at')},
        )
        with self._session() as session:
            session.execute(stmt)
            entry = weight_from_row(session.get(WeightEntryORM, row['id']))

        logger.debug(f"Recorded weight {entry.weight}{entry.unit.value} for {user_id} on {entry.date}")
        return entry

    def delete_entry(self, entry_id: str) -> None:
        with self._session() as session:
            session.execute(delete(WeightEntryORM).where(WeightEntryORM.id == entry_id))


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def settings_from_row(row: SettingsORM) -> Settings:
    return Settings(
        last_active_user_id=row.last_active_user_id,
        weight_unit=WeightUnit(row.weight_unit),
        theme=Theme(row.theme),
        first_day_of_week=FirstDayOfWeek(row.first_day_of_week),
    )


class SettingsRepository(BaseRepository):
    """The singleton settings row; an empty patch returns current settings"""

    UPDATABLE = ('last_active_user_id', 'weight_unit', 'theme', 'first_day_of_week')

    @staticmethod
    def _row(session: Session) -> SettingsORM:
        row = session.get(SettingsORM, SETTINGS_ROW_ID)
        if row is None:
            defaults = Settings()
            row = SettingsORM(
                id=SETTINGS_ROW_ID,
                weight_unit=defaults.weight_unit.value,
                theme=defaults.theme.value,
                first_day_of_week=int(defaults.first_day_of_week),
            )
            session.add(row)
            session.flush()
        return row

    def get_settings(self) -> Settings:
        with self._session() as session:
            return settings_from_row(self._row(session))

    def update_settings(self, updates: Dict[str, Any]) -> Settings:
        updates = _check_patch(updates, self.UPDATABLE, "settings")
        if 'weight_unit' in updates:
            updates['weight_unit'] = coerce_enum(WeightUnit, updates['weight_unit'], "weight unit").value
        if 'theme' in updates:
            updates['theme'] = coerce_enum(Theme, updates['theme'], "theme").value
        if 'first_day_of_week' in updates:
            updates['first_day_of_week'] = int(
                coerce_enum(FirstDayOfWeek, updates['first_day_of_week'], "first day of week")
            )

        with self._session() as session:
            row = self._row(session)
            for key, value in updates.items():
                setattr(row, key, value)
            session.flush()
            return settings_from_row(row)
