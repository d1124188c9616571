"""Result dataclasses returned by service operations."""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from db.enums import AnalyticsSource, VerificationOutcome
from db.models import Tips


@dataclass
class LedgerAggregate:
    count: int
    total_amount: Decimal
    unique_senders: int
    earliest: datetime | None
    latest: datetime | None


@dataclass
class RecordResult:
    tip: Tips
    created: bool
    verification: VerificationOutcome


@dataclass(frozen=True)
class AnalyticsReport:
    total_tips: int
    total_amount: Decimal
    unique_tippers: int
    average_per_tip: Decimal
    earliest_tip: datetime | None
    latest_tip: datetime | None
    days_active: int
    average_per_day: Decimal
    currency: str
    period_days: int
    source: AnalyticsSource

    def with_changes(self, **changes: object) -> "AnalyticsReport":
        return replace(self, **changes)
