from __future__ import annotations

from datetime import date

import pytest

from fitwell.config import Config
from fitwell.core.core_app import FitwellApp
from fitwell.data.database import Database

TODAY = date(2024, 6, 5)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "fitwell.db"


@pytest.fixture
def db(db_path):
    database = Database(str(db_path))
    database.init()
    yield database
    database.close()


@pytest.fixture
def app(db_path):
    config = Config(database_path=str(db_path))
    with FitwellApp(config, clock=lambda: TODAY) as fitwell_app:
        yield fitwell_app


@pytest.fixture
def user(app):
    return app.create_user("Ada", "Lovelace", avatar_color="#ff8800")
