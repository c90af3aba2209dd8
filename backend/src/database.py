"""Database session factory and configuration.

Provides connectivity to the default (single-tenant) admin database.
Tenant-specific admin databases are resolved through
tenancy.context_provider.TenantSpecificDbContextProvider.
"""

from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from config import settings

DATABASE_URL = settings.DATABASE_URL

# Create engine with connection pooling
# Pool settings only apply to server databases (not SQLite)
_engine_kwargs = {
    "pool_pre_ping": True,  # Verify connections before using
    "echo": False,  # Set to True for SQL query logging
}

if not DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10

engine = create_engine(DATABASE_URL, **_engine_kwargs)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_db_session(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.query(JobStatus).all()

    Automatically commits on success, rolls back on exception.

    Args:
        session_factory: Factory to open the session from. Defaults to the
            admin database's SessionLocal; pass a tenant factory to target
            a tenant's own admin database.
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @app.get("/educationOrganizations")
        def list_edorgs(db: Session = Depends(get_db)):
            return db.query(EducationOrganization).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
