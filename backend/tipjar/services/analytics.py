"""Analytics reconciler: ledger analytics, optionally overridden by chain statistics."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Protocol

import structlog

from db.enums import AnalyticsSource
from tipjar.services._helpers import AMOUNT_QUANTUM, utc_now
from tipjar.services._types import AnalyticsDict
from tipjar.services.errors import ChainQueryError
from tipjar.services.schemas.chain import TransferAggregate
from tipjar.services.schemas.results import AnalyticsReport, LedgerAggregate
from tipjar.services.tip_ledger import TipLedger

logger = structlog.get_logger(__name__)

DEFAULT_PERIOD_DAYS = 30
# Ten years. Keeps `now - days` inside the datetime range
MAX_PERIOD_DAYS = 3650


class TransferStatsSource(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def get_aggregate_transfers(
        self,
        address: str,
        token_address: str | None = None,
        since: datetime | None = None,
    ) -> TransferAggregate: ...


def _ratio(numerator: Decimal, denominator: int) -> Decimal:
    if denominator <= 0:
        return Decimal(0)
    return (numerator / denominator).quantize(AMOUNT_QUANTUM)


def _span_days(earliest: datetime | None, latest: datetime | None) -> int:
    """UTC calendar days from first to last tip, counting both ends."""
    if earliest is None or latest is None:
        return 0
    return (latest.astimezone(UTC).date() - earliest.astimezone(UTC).date()).days + 1


def report_to_dict(report: AnalyticsReport) -> AnalyticsDict:
    return AnalyticsDict(
        total_tips=report.total_tips,
        total_amount=float(report.total_amount),
        unique_tippers=report.unique_tippers,
        average_per_tip=float(report.average_per_tip),
        earliest_tip=report.earliest_tip.isoformat() if report.earliest_tip else None,
        latest_tip=report.latest_tip.isoformat() if report.latest_tip else None,
        days_active=report.days_active,
        average_per_day=float(report.average_per_day),
        currency=report.currency,
        source=report.source.value,
        period=f"{report.period_days} days",
    )


class AnalyticsReconciler:
    """Builds one AnalyticsReport per (receiver, window).

    The ledger report is always computed and is the base. Chain statistics,
    when available, replace the volume figures; any chain failure leaves the
    ledger report standing. Never writes.
    """

    def __init__(
        self,
        ledger: TipLedger,
        chain: TransferStatsSource | None = None,
        currency: str = "USDC",
    ) -> None:
        self.ledger: TipLedger = ledger
        self.chain: TransferStatsSource | None = chain
        self.currency: str = currency

    def database_report(self, address: str, since: datetime, days: int) -> AnalyticsReport:
        agg: LedgerAggregate = self.ledger.aggregate_by_receiver(address, since=since)
        days_active: int = _span_days(agg.earliest, agg.latest)
        return AnalyticsReport(
            total_tips=agg.count,
            total_amount=agg.total_amount,
            unique_tippers=agg.unique_senders,
            average_per_tip=_ratio(agg.total_amount, agg.count),
            earliest_tip=agg.earliest,
            latest_tip=agg.latest,
            days_active=days_active,
            average_per_day=_ratio(agg.total_amount, days_active),
            currency=self.currency,
            period_days=days,
            source=AnalyticsSource.DATABASE,
        )

    def onchain_report(self, address: str, since: datetime, days: int) -> AnalyticsReport | None:
        """Chain-side report, or None when unconfigured or the indexer fails."""
        if self.chain is None or not self.chain.is_configured:
            return None
        try:
            agg: TransferAggregate = self.chain.get_aggregate_transfers(address, since=since)
        except ChainQueryError as e:
            logger.warning(
                "On-chain analytics unavailable, using ledger only",
                receiver=address,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        return AnalyticsReport(
            total_tips=agg.count,
            total_amount=agg.total_amount,
            unique_tippers=agg.unique_senders,
            average_per_tip=_ratio(agg.total_amount, agg.count),
            earliest_tip=None,
            latest_tip=None,
            days_active=agg.active_days,
            average_per_day=_ratio(agg.total_amount, agg.active_days),
            currency=agg.currency or self.currency,
            period_days=days,
            source=AnalyticsSource.ONCHAIN,
        )

    @staticmethod
    def merge(db: AnalyticsReport, onchain: AnalyticsReport | None) -> AnalyticsReport:
        if onchain is None:
            return db

        # TODO: reconcile per transaction hash once on-chain transfers are
        # matched against ledger rows; until then chain volume replaces ours.
        merged: AnalyticsReport = db.with_changes(
            total_tips=onchain.total_tips,
            total_amount=onchain.total_amount,
            unique_tippers=onchain.unique_tippers,
            average_per_tip=onchain.average_per_tip,
            source=AnalyticsSource.HYBRID,
        )
        if onchain.days_active > 0:
            merged = merged.with_changes(
                days_active=onchain.days_active,
                average_per_day=onchain.average_per_day,
            )
        return merged

    def get_analytics(self, address: str, days: int = DEFAULT_PERIOD_DAYS) -> AnalyticsReport:
        if days < 1 or days > MAX_PERIOD_DAYS:
            days = DEFAULT_PERIOD_DAYS
        since: datetime = utc_now() - timedelta(days=days)

        db: AnalyticsReport = self.database_report(address, since, days)
        merged: AnalyticsReport = self.merge(db, self.onchain_report(address, since, days))
        logger.debug(
            "Analytics built",
            receiver=address,
            days=days,
            source=merged.source.value,
            total_tips=merged.total_tips,
        )
        return merged
