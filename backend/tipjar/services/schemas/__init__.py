"""Shared dataclasses for tip jar services."""

from tipjar.services.schemas.chain import (
    OnChainTransfer,
    TransactionVerification,
    TransferAggregate,
)
from tipjar.services.schemas.results import (
    AnalyticsReport,
    LedgerAggregate,
    RecordResult,
)
from tipjar.services.schemas.tips import TipInput, TipSubmission

__all__ = [
    # Chain schemas
    "OnChainTransfer",
    "TransactionVerification",
    "TransferAggregate",
    # Tip schemas
    "TipInput",
    "TipSubmission",
    # Result schemas
    "AnalyticsReport",
    "LedgerAggregate",
    "RecordResult",
]
