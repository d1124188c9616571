"""Tip submission and ledger input objects."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class TipSubmission:
    """What a client claims it paid. Fields may be missing until validated."""

    sender_address: str | None
    receiver_address: str | None
    amount: Decimal | None
    currency: str | None
    transaction_hash: str | None
    message: str | None = None


@dataclass(frozen=True)
class TipInput:
    """A validated tip, minus the id and timestamp the ledger assigns."""

    sender_address: str
    receiver_address: str
    amount: Decimal
    currency: str
    transaction_hash: str
    message: str | None = None
