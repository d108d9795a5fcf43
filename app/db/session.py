from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from civreg.config import ConcurrencyCfg, DatabaseCfg, Settings


def _postgres_engine_kwargs(database: DatabaseCfg) -> dict[str, Any]:
    """Return connection pooling settings for Postgres."""

    pool_size = int(os.getenv("DB_POOL_SIZE", str(database.pool_size)))
    max_overflow = int(os.getenv("DB_POOL_MAX_OVERFLOW", str(database.max_overflow)))
    pool_timeout = float(os.getenv("DB_POOL_TIMEOUT", str(database.pool_timeout)))
    pool_recycle = int(os.getenv("DB_POOL_RECYCLE", str(database.pool_recycle)))

    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "pool_pre_ping": True,
    }


def _install_sqlite_listeners(engine: Engine) -> None:
    """Enable WAL and make every transaction take the write lock up front."""

    @event.listens_for(engine, "connect")
    def _sqlite_configure(dbapi_connection, connection_record):  # pragma: no cover - depends on driver
        # Hand transaction control to the "begin" listener below.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):  # pragma: no cover - depends on driver
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(db_url: str | URL | None = None, *, settings: Settings | None = None) -> Engine:
    """Create a SQLAlchemy engine configured from the provided or default URL."""

    database = settings.database if settings is not None else DatabaseCfg()
    concurrency = settings.concurrency if settings is not None else ConcurrencyCfg()
    resolved_url = make_url(str(db_url or os.getenv("DATABASE_URL") or database.url))
    engine_kwargs: dict[str, Any] = {"echo": database.echo, "future": True}
    backend = resolved_url.get_backend_name()

    if backend in {"postgresql", "postgres"}:
        engine_kwargs.update(_postgres_engine_kwargs(database))
    elif backend == "sqlite":
        engine_kwargs["connect_args"] = {
            "timeout": concurrency.sqlite_busy_timeout_s,
            "check_same_thread": False,
        }

    engine = create_engine(resolved_url, **engine_kwargs)

    if backend == "sqlite":
        _install_sqlite_listeners(engine)

    return engine


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=bind, autoflush=False, autocommit=False, expire_on_commit=False, future=True
    )


DB_URL = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
engine = build_engine(DB_URL)

SessionLocal = make_session_factory(engine)


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "DB_URL",
    "SessionLocal",
    "build_engine",
    "engine",
    "make_session_factory",
    "session_scope",
]
