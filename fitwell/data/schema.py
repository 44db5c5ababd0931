"""
Schema creation, additive migrations and seeding

Safe to run on every startup: tables and indexes are only created when
missing, and migrations only ever add columns.
"""

import logging
from typing import List, Tuple

from sqlalchemy import func, inspect, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import SchemaError
from .models import Base, SETTINGS_ROW_ID, SettingsORM, UserORM

logger = logging.getLogger(__name__)

# (table, column, DDL type); append here when a release adds a column
COLUMN_MIGRATIONS: List[Tuple[str, str, str]] = [
    ('users', 'first_name', 'TEXT'),
    ('users', 'last_name', 'TEXT'),
    ('users', 'birthday', 'TEXT'),
    ('users', 'profile_photo', 'TEXT'),
]

# Fresh installs start with no profiles and go through onboarding
SEED_STATEMENTS: List[str] = []


def ensure_schema(engine: Engine) -> List[str]:
    """Create missing tables, apply column migrations and seed.

    Returns the ``table.column`` names that were added by migrations.
    """
    try:
        Base.metadata.create_all(engine)
        added = apply_column_migrations(engine)
        _ensure_settings_row(engine)
        _seed_if_empty(engine)
    except SQLAlchemyError as e:
        logger.error(f"Schema setup failed: {e}")
        raise SchemaError(f"Schema setup failed: {e}") from e
    return added


def apply_column_migrations(engine: Engine) -> List[str]:
    """Add any columns introduced after a table was first created"""
    inspector = inspect(engine)
    existing = {
        table: {col['name'] for col in inspector.get_columns(table)}
        for table in {table for table, _, _ in COLUMN_MIGRATIONS}
    }
    added = []

    with engine.begin() as conn:
        for table, column, ddl_type in COLUMN_MIGRATIONS:
            if column in existing[table]:
                continue
            logger.info(f"Migrating: adding {table}.{column}")
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl_type}"))
            existing[table].add(column)
            added.append(f"{table}.{column}")

    return added


def _ensure_settings_row(engine: Engine) -> None:
    stmt = sqlite_insert(SettingsORM).values(id=SETTINGS_ROW_ID).on_conflict_do_nothing()
    with engine.begin() as conn:
        conn.execute(stmt)


def _seed_if_empty(engine: Engine) -> None:
    with engine.begin() as conn:
        user_count = conn.execute(select(func.count()).select_from(UserORM)).scalar_one()
        if user_count:
            return
        logger.info("Seeding initial data...")
        for statement in SEED_STATEMENTS:
            conn.execute(text(statement))
