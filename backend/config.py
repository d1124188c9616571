"""Application settings: single file, Pydantic-based.

DB selection:
  - DATABASE_URL set and non-empty -> PostgreSQL
  - DATABASE_URL absent/empty -> SQLite (DB_SQLITE_PATH, default data/tipjar.db)

Chain indexing:
  - BITQUERY_API_KEY absent -> verification and on-chain analytics are skipped
"""

import re
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_USDC_ADDRESS: str = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


def _backend_root() -> Path:
    """Backend package root (backend/). config.py lives at backend/config.py."""
    return Path(__file__).resolve().parent


def _ensure_env_loaded() -> None:
    """Load .env from backend root (then project root). Idempotent."""
    root: Path = _backend_root()
    for candidate in (root / ".env", root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)


_ensure_env_loaded()


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=(str(_backend_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str | None = Field(
        default=None,
        description="PostgreSQL DSN; when set, uses Postgres.",
        validation_alias="DATABASE_URL",
    )
    sqlite_path: str | None = Field(default="data/tipjar.db")
    pool_size: int = Field(default=5)
    pool_timeout: int = Field(default=10)
    pool_recycle: int = Field(default=1800)
    connect_timeout: int = Field(default=5, description="Seconds to open a Postgres connection")
    statement_timeout: int = Field(
        default=10, description="Seconds any single Postgres statement may run"
    )

    def _use_postgres(self) -> bool:
        return bool((self.database_url or "").strip())

    def _resolved_sqlite_path(self) -> Path:
        raw: str = (self.sqlite_path or "data/tipjar.db").strip()
        path: Path = Path(raw)
        if not path.is_absolute():
            path = (_backend_root() / path).resolve()
        return path

    def _redacted_postgres_dsn(self) -> str:
        url: str = (self.database_url or "").strip()
        return re.sub(r":([^:@]+)@", r":***@", url) if url else ""

    @property
    def url(self) -> str:
        if self._use_postgres():
            return (self.database_url or "").strip()
        path = self._resolved_sqlite_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path.as_posix()}"

    def db_info_for_logging(self) -> str:
        if self._use_postgres():
            return f"PostgreSQL @ {self._redacted_postgres_dsn()}"
        return f"SQLite @ {self._resolved_sqlite_path().as_posix()}"


class IndexerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BITQUERY_",
        env_file=(str(_backend_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str | None = Field(default=None, description="Absent key disables chain queries")
    api_url: str = Field(default="https://graphql.bitquery.io")
    network: str = Field(default="base")
    token_address: str = Field(default=BASE_USDC_ADDRESS)
    currency: str = Field(default="USDC")
    timeout: float = Field(default=5.0)

    @property
    def is_configured(self) -> bool:
        return bool((self.api_key or "").strip())


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TIPJAR_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    api_key: str | None = Field(default=None, description="API key for operator endpoints")
    data_dir: Path = Field(default=Path("data"))
    verify_transactions: bool = Field(default=True)
    default_analytics_days: int = Field(default=30)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    indexer: IndexerSettings = Field(default_factory=IndexerSettings)

    def model_post_init(self, _context: object) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
