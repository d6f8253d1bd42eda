"""Database configuration and session management.

The engine defaults to SQLite, configured for many concurrent scan handlers
writing to the same file:

    - **WAL (Write-Ahead Logging)**: readers resolving tokens are never
      blocked by the writer currently flipping a check-in flag.

    - **Foreign Keys**: enforced so that Members and FoodScans cannot outlive
      their Team. Ledger tables carry no foreign keys.

    - **Busy timeout**: concurrent writers queue on the database lock for up
      to ``settings.database_busy_timeout`` seconds instead of failing
      immediately with "database is locked".

Any other SQLAlchemy URL works unchanged; the pragmas are only applied to
SQLite connections.
"""

from sqlalchemy import event as sa_event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from gatekeeper.core.config import settings


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine for ``url`` with the SQLite pragmas attached."""
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        # Handlers may run in FastAPI's threadpool, so connections cross threads.
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.database_busy_timeout)
        kwargs["connect_args"] = connect_args

    new_engine = create_engine(url, echo=settings.debug, **kwargs)

    if is_sqlite:
        sa_event.listen(new_engine, "connect", set_sqlite_pragma)

    return new_engine


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.database_url)


def create_db_and_tables():
    """Create all database tables."""
    # Import for side effects: registers every table on SQLModel.metadata
    import gatekeeper.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
