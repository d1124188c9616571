"""Tests for db.connection engine options."""

from typing import Any

from config import DatabaseSettings
from db.connection import engine_options


def _postgres(**overrides: Any) -> DatabaseSettings:
    return DatabaseSettings(DATABASE_URL="postgresql://tipjar:secret@db:5432/tipjar", **overrides)


def test_postgres_statements_are_time_limited() -> None:
    opts: dict[str, Any] = engine_options(_postgres(statement_timeout=3, connect_timeout=2))
    assert opts["connect_args"]["options"] == "-c statement_timeout=3000"
    assert opts["connect_args"]["connect_timeout"] == 2


def test_postgres_pool_settings() -> None:
    opts: dict[str, Any] = engine_options(_postgres(pool_timeout=7), echo=True)
    assert opts["pool_timeout"] == 7
    assert opts["pool_pre_ping"] is True
    assert opts["echo"] is True


def test_postgres_default_statement_timeout() -> None:
    opts: dict[str, Any] = engine_options(_postgres())
    assert opts["connect_args"]["options"] == "-c statement_timeout=10000"


def test_sqlite_waits_are_bounded() -> None:
    opts: dict[str, Any] = engine_options(DatabaseSettings(DATABASE_URL="", pool_timeout=4))
    assert opts["connect_args"] == {"check_same_thread": False, "timeout": 4}
    assert "pool_size" not in opts
