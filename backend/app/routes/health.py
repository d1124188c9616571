"""Liveness and ledger readiness endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import inspect
from sqlalchemy.engine import Inspector
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.dependencies import get_api_key, get_db
from app.schemas.health import HealthResponse, LedgerHealthResponse
from config import Settings, get_settings
from db.models import Base
from tipjar.services._types import LedgerHealthDict

logger: logging.Logger = logging.getLogger(__name__)

router: APIRouter = APIRouter(tags=["health"])

IDEMPOTENCY_CONSTRAINT = "uq_tips_transaction_hash"


def _has_idempotency_guard(inspector: Inspector) -> bool:
    """True when the tips table enforces one row per transaction hash."""
    for uc in inspector.get_unique_constraints("tips"):
        if uc.get("name") == IDEMPOTENCY_CONSTRAINT or uc.get("column_names") == [
            "transaction_hash"
        ]:
            return True
    # Some backends report unique constraints only as unique indexes
    return any(
        ix.get("unique") and ix.get("column_names") == ["transaction_hash"]
        for ix in inspector.get_indexes("tips")
    )


def get_ledger_health(db: Session) -> LedgerHealthDict:
    """Can this deployment record tips exactly once? Never raises."""
    settings: Settings = get_settings()
    health: LedgerHealthDict = LedgerHealthDict(
        backend="postgres" if settings.database._use_postgres() else "sqlite",
        database=settings.database.db_info_for_logging(),
        schema_ready=False,
        idempotency_guard=False,
        indexer_configured=settings.indexer.is_configured,
        indexer_network=settings.indexer.network,
        verify_transactions=settings.verify_transactions,
    )
    try:
        inspector: Inspector = inspect(db.connection())
        existing: set[str] = set(inspector.get_table_names())
        missing: list[str] = sorted(set(Base.metadata.tables) - existing)
        health["tables_missing"] = missing
        health["schema_ready"] = not missing
        if "tips" in existing:
            health["idempotency_guard"] = _has_idempotency_guard(inspector)
    except SQLAlchemyError as e:
        logger.exception("Ledger health check failed: %s", e)
        db.rollback()
        health["error"] = str(e)

    if health["schema_ready"] and not health["idempotency_guard"]:
        logger.error("tips.transaction_hash is not unique; duplicate tips are possible")
    return health


@router.get("/health", response_model=HealthResponse)
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/health/ledger",
    response_model=LedgerHealthResponse,
    dependencies=[Depends(get_api_key)],
)
def ledger_health(db: Session = Depends(get_db)) -> LedgerHealthDict:
    return get_ledger_health(db)
