"""Database engine, session management, and FastAPI dependency."""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import DatabaseSettings, get_settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def engine_options(db: DatabaseSettings, echo: bool = False) -> dict[str, Any]:
    """create_engine() kwargs. Every ledger call is time-bounded on either backend."""
    opts: dict[str, Any] = {"echo": echo}

    if db._use_postgres():
        opts.update(
            pool_size=db.pool_size,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=True,
            connect_args={
                "connect_timeout": db.connect_timeout,
                "options": f"-c statement_timeout={db.statement_timeout * 1000}",
            },
        )
    else:
        # FastAPI runs sync routes in a threadpool
        opts["connect_args"] = {
            "check_same_thread": False,
            "timeout": db.pool_timeout,
        }
    return opts


def get_engine() -> Engine:
    """Get or create the shared database engine."""
    global _engine

    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.database.url,
            **engine_options(settings.database, echo=settings.debug),
        )

        if not settings.database._use_postgres():
            busy_ms: int = settings.database.pool_timeout * 1000

            @event.listens_for(_engine, "connect")
            def _set_sqlite_pragma(dbapi_conn, connection_record):
                cur = dbapi_conn.cursor()
                cur.execute("PRAGMA foreign_keys=ON")
                cur.execute("PRAGMA journal_mode=WAL")
                cur.execute(f"PRAGMA busy_timeout={busy_ms}")
                # Tips must survive a crash once the insert returns
                cur.execute("PRAGMA synchronous=FULL")
                cur.close()

        logger.info("Engine created: %s", settings.database.db_info_for_logging())

    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Context-managed session with commit/rollback."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
