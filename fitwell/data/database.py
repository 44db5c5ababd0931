"""
SQLite connection lifecycle

One ``Database`` owns one engine for the lifetime of the process (or of a
test). Nothing here is module-global, so several isolated instances can
coexist.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import default_database_path
from ..errors import DatabaseNotInitializedError
from .schema import ensure_schema

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class Database:
    """Owns the engine and hands out sessions"""

    def __init__(self, path: Optional[str] = None, journal_mode: str = "WAL", echo: bool = False):
        self.path = str(path) if path is not None else default_database_path()
        self.journal_mode = journal_mode
        self.echo = echo
        self._engine: Optional[Engine] = None
        self.Session: Optional[sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def init(self) -> Engine:
        """Open the store and bring the schema up to date; reuses an open engine"""
        if self._engine is not None:
            return self._engine

        logger.info(f"Initializing database at: {self.path}")
        engine = self._create_engine()
        try:
            ensure_schema(engine)
        except Exception:
            engine.dispose()
            raise

        self._engine = engine
        self.Session = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info("Database ready")
        return engine

    def _create_engine(self) -> Engine:
        if self.path == MEMORY_PATH:
            # A single shared connection, otherwise each connection gets its own empty database
            engine = create_engine(
                "sqlite://",
                echo=self.echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(f"sqlite:///{self.path}", echo=self.echo)

        journal_mode = self.journal_mode

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.execute(f"PRAGMA journal_mode = {journal_mode}")
            cursor.close()

        return engine

    def get(self) -> Engine:
        if self._engine is None:
            raise DatabaseNotInitializedError()
        return self._engine

    @property
    def engine(self) -> Engine:
        return self.get()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session for one unit of work: commit on success, rollback on error"""
        self.get()
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Release the engine; calling it again is a no-op"""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self.Session = None
        logger.info("Database closed")

    def __enter__(self) -> "Database":
        self.init()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
