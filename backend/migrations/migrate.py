"""Simple SQL migration runner.

Reads .sql files from the migrations/ directory in lexicographic order,
tracks applied migrations in a _migrations table, and skips already-applied ones.

Usage:
    python -m migrations.migrate                # apply pending migrations
    python -m migrations.migrate --dry-run      # show what would be applied
    python -m migrations.migrate --status       # show migration status
"""

import argparse
import logging
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from config import get_settings
from db.connection import get_engine

logger: logging.Logger = logging.getLogger(__name__)

MIGRATIONS_DIR: Path = Path(__file__).resolve().parent


def _ensure_tracking_table(conn: Connection) -> None:
    conn.execute(
        text(
            "CREATE TABLE IF NOT EXISTS _migrations ("
            "  filename TEXT PRIMARY KEY,"
            "  applied_at TEXT NOT NULL"
            ")"
        )
    )


def _get_applied(conn: Connection) -> set[str]:
    rows = conn.execute(text("SELECT filename FROM _migrations")).fetchall()
    return {r[0] for r in rows}


def _get_pending(applied: set[str]) -> list[Path]:
    sql_files: list[Path] = sorted(MIGRATIONS_DIR.glob("*.sql"))
    return [f for f in sql_files if f.name not in applied]


def _split_statements(sql: str) -> list[str]:
    lines: list[str] = [ln for ln in sql.splitlines() if not ln.strip().startswith("--")]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]


def migrate(dry_run: bool = False, engine: Engine | None = None) -> list[str]:
    """Apply pending migrations. Returns the filenames applied (or due, on dry run)."""
    eng: Engine = engine or get_engine()
    logger.info("Migrating: %s", get_settings().database.db_info_for_logging())

    with eng.begin() as conn:
        _ensure_tracking_table(conn)
        pending: list[Path] = _get_pending(_get_applied(conn))

    if not pending:
        logger.info("No pending migrations.")
        return []

    done: list[str] = []
    for migration in pending:
        logger.info("%sApplying %s", "[DRY RUN] " if dry_run else "", migration.name)
        done.append(migration.name)
        if dry_run:
            continue

        with eng.begin() as conn:
            for stmt in _split_statements(migration.read_text()):
                conn.exec_driver_sql(stmt)
            conn.execute(
                text("INSERT INTO _migrations (filename, applied_at) VALUES (:f, :t)"),
                {"f": migration.name, "t": datetime.now(UTC).isoformat()},
            )
    return done


def status() -> None:
    with get_engine().begin() as conn:
        _ensure_tracking_table(conn)
        applied: set[str] = _get_applied(conn)
    pending: list[Path] = _get_pending(applied)

    print(f"Database: {get_settings().database.db_info_for_logging()}")
    print(f"Applied:  {len(applied)}")
    for name in sorted(applied):
        print(f"  [x] {name}")
    print(f"Pending:  {len(pending)}")
    for p in pending:
        print(f"  [ ] {p.name}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser: argparse.ArgumentParser = argparse.ArgumentParser(description="SQL migration runner")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be applied")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    args: argparse.Namespace = parser.parse_args()

    if args.status:
        status()
    else:
        migrate(dry_run=args.dry_run)


if __name__ == "__main__":
    main()
