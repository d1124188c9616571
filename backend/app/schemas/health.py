"""Health schemas."""

from app.schemas.common import CamelModel


class HealthResponse(CamelModel):
    status: str


class LedgerHealthResponse(CamelModel):
    backend: str
    database: str | None = None
    schema_ready: bool
    tables_missing: list[str] = []
    idempotency_guard: bool
    indexer_configured: bool
    indexer_network: str | None = None
    verify_transactions: bool
    error: str | None = None
