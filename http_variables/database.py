"""
SQLAlchemy setup for the environment store.

The URL comes from ``Settings.database_url`` (a local SQLite file unless
configured otherwise). ``make_engine`` is also used by the tests to point the
app at a throwaway database.
"""

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import get_settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # Variables rely on ON DELETE CASCADE
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str) -> Engine:
    """Create an engine; SQLite URLs get thread sharing and foreign keys enabled."""
    if not url.startswith("sqlite"):
        return create_engine(url)

    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
    return sqlite_engine


engine = make_engine(get_settings().database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def init_db() -> None:
    """Create missing tables at startup."""
    from . import models  # noqa: F401  registers the mapped classes

    Base.metadata.create_all(bind=engine)


def get_db():
    """FastAPI dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
