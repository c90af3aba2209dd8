"""Pytest fixtures for schema tests.

Builds two SQLite databases: one from the migration scripts and one from
the ORM models, so the tests can check that both agree.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from fixtures.migrations import run_migrations
from models.base import Base


@pytest.fixture(scope="class")
def engine(tmp_path_factory) -> Engine:
    """SQLite database created by the migration scripts."""
    path = tmp_path_factory.mktemp("schema") / "migrated.db"
    db_engine = create_engine(f"sqlite:///{path}")
    run_migrations(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture(scope="class")
def model_engine(tmp_path_factory) -> Engine:
    """SQLite database created from the ORM models."""
    path = tmp_path_factory.mktemp("schema") / "models.db"
    db_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    db_engine.dispose()
