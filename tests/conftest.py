from __future__ import annotations

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from core.seed import ensure_sample_schema
from core.settings import Settings
from core.sql_exec import SqlEngine, dispose_engines


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings({"SQLFORGE_DB_URL": f"sqlite:///{tmp_path / 'sandbox.db'}"})


@pytest.fixture()
def engine(settings):
    sql_engine = SqlEngine.from_settings(settings)
    ensure_sample_schema(sql_engine.engine)
    yield sql_engine
    dispose_engines()


@pytest.fixture()
def app(settings):
    from main import create_app

    flask_app = create_app(settings)
    flask_app.config["TESTING"] = True
    yield flask_app
    dispose_engines()


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(autouse=True, scope="session")
def _structured_logging():
    from core.logging_utils import setup_logging

    setup_logging(Settings({"SQLFORGE_DEBUG": False}))
    yield
