"""Pytest fixtures for the Admin API backend.

Provides reusable test fixtures for:
- SQLite admin database with all tables (file based, shared by threads)
- Encryption key and provider for ODS connection strings
- ODS instance rows with encrypted connection strings
- Settings snapshots for the education organization refresh

Usage:
    def test_refresh(session_factory, add_ods_instance):
        instance = add_ods_instance(1, "Ods 1")
        ...
"""

import base64
import os
import sys
from pathlib import Path
from typing import Callable, Generator

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATABASE_ENGINE"] = "PostgreSql"
os.environ["MULTI_TENANCY"] = "false"
os.environ["ENCRYPTION_KEY"] = base64.b64encode(b"k" * 32).decode("ascii")
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["EDORG_REFRESH_INTERVAL_MINUTES"] = "0"
os.environ["LOG_JSON"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from models.base import Base
from models.ods_instance import OdsInstance
from infrastructure.encryption import SymmetricStringEncryptionProvider
from tenancy.database_engine import DatabaseEngine
from edorgs.options import RefreshOptions


TEST_ENCRYPTION_KEY = os.environ["ENCRYPTION_KEY"]


def make_admin_engine(path: Path):
    """Create a SQLite admin database with all tables."""
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def admin_engine(tmp_path):
    """File based SQLite admin database, usable from worker threads."""
    engine = make_admin_engine(tmp_path / "admin.db")
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(admin_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=admin_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def encryption_key() -> bytes:
    return base64.b64decode(TEST_ENCRYPTION_KEY)


@pytest.fixture
def encryption_provider() -> SymmetricStringEncryptionProvider:
    return SymmetricStringEncryptionProvider()


@pytest.fixture
def refresh_options() -> RefreshOptions:
    """Single-tenant options with the test key and a pool of 4 workers."""
    return RefreshOptions(
        encryption_key=TEST_ENCRYPTION_KEY,
        database_engine=DatabaseEngine.POSTGRESQL,
        multi_tenancy=False,
        max_parallelism=4,
    )


@pytest.fixture
def add_ods_instance(
    session_factory, encryption_provider, encryption_key
) -> Callable[..., OdsInstance]:
    """Factory adding an ODS instance with an encrypted connection string.

    The plaintext connection string is "ods-{instance_id}" unless given.
    Pass encrypted=False to store the connection string as-is.
    """

    def _add(instance_id: int, name: str = None, connection_string: str = None,
             encrypted: bool = True, factory=None) -> OdsInstance:
        plaintext = connection_string or f"ods-{instance_id}"
        stored = encryption_provider.encrypt(plaintext, encryption_key) if encrypted else plaintext

        session = (factory or session_factory)()
        try:
            instance = OdsInstance(
                ods_instance_id=instance_id,
                name=name or f"Ods Instance {instance_id}",
                instance_type="Production",
                connection_string=stored,
            )
            session.add(instance)
            session.commit()
            session.refresh(instance)
            session.expunge(instance)
            return instance
        finally:
            session.close()

    return _add
