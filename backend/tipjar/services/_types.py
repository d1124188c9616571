"""Typed dicts for service-layer return values.

Keeps route-facing methods explicit about their shape instead of returning bare dicts.
"""

from typing import TypedDict

# -- Tips ------------------------------------------------------------------


class TipDict(TypedDict):
    tip_id: str
    sender_address: str
    receiver_address: str
    amount: float
    currency: str
    message: str | None
    timestamp: str
    transaction_hash: str


class OnChainTransferDict(TypedDict):
    transaction_hash: str
    sender_address: str
    receiver_address: str
    amount: float
    currency: str
    timestamp: str | None


# -- Analytics -------------------------------------------------------------


class AnalyticsDict(TypedDict):
    total_tips: int
    total_amount: float
    unique_tippers: int
    average_per_tip: float
    earliest_tip: str | None
    latest_tip: str | None
    days_active: int
    average_per_day: float
    currency: str
    source: str
    period: str


# -- Profiles --------------------------------------------------------------


class ProfileDict(TypedDict):
    creator_id: str
    user_id: str
    display_name: str
    bio: str | None
    vanity_url: str
    wallet_address: str
    created_at: str


# -- Health ----------------------------------------------------------------


class LedgerHealthDict(TypedDict, total=False):
    backend: str
    database: str
    schema_ready: bool
    tables_missing: list[str]
    idempotency_guard: bool
    indexer_configured: bool
    indexer_network: str
    verify_transactions: bool
    error: str
