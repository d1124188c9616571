"""Chain-indexing data transfer objects."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class TransactionVerification:
    tx_hash: str
    success: bool
    from_address: str | None
    to_address: str | None
    value: Decimal
    timestamp: datetime | None


@dataclass
class TransferAggregate:
    count: int
    unique_senders: int
    total_amount: Decimal
    active_days: int
    currency: str


@dataclass
class OnChainTransfer:
    transaction_hash: str
    sender_address: str
    receiver_address: str
    amount: Decimal
    currency: str
    timestamp: datetime | None
