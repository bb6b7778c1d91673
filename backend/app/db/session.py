"""Database engine and sessions. SQLite by default, PostgreSQL via DATABASE_URL."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.core.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # vendor_id references are only enforced when asked for
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str, **kwargs) -> Engine:
    """
    SQLite: one connection per use (NullPool) unless a pool is passed in,
    foreign keys switched on.
    PostgreSQL: QueuePool with pre-ping so a hosted database that dropped
    an idle connection does not fail the next request.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("poolclass", NullPool)
        engine = create_engine(url, connect_args={"check_same_thread": False}, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        **kwargs,
    )


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
