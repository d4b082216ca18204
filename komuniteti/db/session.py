"""Database session management."""

from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from komuniteti.config.settings import Settings, settings


def build_engine(config: Optional[Settings] = None, url: Optional[str] = None, **kwargs) -> Engine:
    """
    Create an engine for the configured database.

    SQLite connections are shared with worker threads (the gateway runs
    synchronous commands in a thread pool) and enforce foreign keys.
    """
    config = config or settings
    url = url or config.DATABASE_URL
    options = {
        "echo": config.DB_ECHO,
        "pool_pre_ping": config.DB_POOL_PRE_PING,
    }

    if url.startswith("sqlite"):
        connect_args = dict(kwargs.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        options["connect_args"] = connect_args

    options.update(kwargs)
    engine = create_engine(url, **options)

    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


# Create database engine and session factory from settings
engine = build_engine()
SessionLocal = build_session_factory(engine)

