"""Analytics endpoints: thin routes, logic in services."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_chain_client, get_db
from app.schemas.analytics import AnalyticsResponse
from app.schemas.common import ErrorResponse
from config import Settings, get_settings
from tipjar.services._types import AnalyticsDict
from tipjar.services.analytics import MAX_PERIOD_DAYS, AnalyticsReconciler, report_to_dict
from tipjar.services.chain_client import ChainQueryClient
from tipjar.services.schemas.results import AnalyticsReport
from tipjar.services.tip_ledger import TipLedger

router: APIRouter = APIRouter(
    prefix="/api",
    tags=["analytics"],
    responses={400: {"model": ErrorResponse}},
)


def _parse_days(raw: str | None, default: int) -> int:
    try:
        days: int = int(raw) if raw is not None else default
    except ValueError:
        return default
    return days if 1 <= days <= MAX_PERIOD_DAYS else default


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    address: str | None = Query(None),
    days: str | None = Query(None),
    db: Session = Depends(get_db),
    chain: ChainQueryClient | None = Depends(get_chain_client),
) -> AnalyticsDict:
    if not address:
        raise HTTPException(400, detail="Address parameter is required")
    settings: Settings = get_settings()
    reconciler: AnalyticsReconciler = AnalyticsReconciler(
        TipLedger(db),
        chain,
        currency=settings.indexer.currency,
    )
    days_n: int = _parse_days(days, settings.default_analytics_days)
    report: AnalyticsReport = reconciler.get_analytics(address, days_n)
    return report_to_dict(report)
