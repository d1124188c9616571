"""Shared exception hierarchy for tip jar services."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from db.models import Tips

# ── Chain ─────────────────────────────────────────────────────────────────────


class ChainQueryError(Exception):
    """Base exception for chain indexing queries."""


class UpstreamUnavailableError(ChainQueryError):
    """Indexing service unreachable, timed out, or refused the query."""


class MalformedResponseError(ChainQueryError):
    """Indexing service answered with a payload of unexpected shape."""


# ── Ledger ────────────────────────────────────────────────────────────────────


class TipLedgerError(Exception):
    """Base exception for tip ledger errors."""


class TipValidationError(TipLedgerError):
    """Tip input is missing a field or has a non-positive amount."""


class DuplicateTransactionError(TipLedgerError):
    """A tip with this transaction hash is already recorded."""

    def __init__(self, transaction_hash: str, existing: "Tips | None" = None) -> None:
        super().__init__(f"Transaction {transaction_hash} already recorded")
        self.transaction_hash = transaction_hash
        self.existing = existing


class StorageFailureError(TipLedgerError):
    """The ledger write failed; the outcome is unknown to the caller."""


# ── Recorder ──────────────────────────────────────────────────────────────────


class TipRecorderError(Exception):
    """Base exception for tip recording errors."""


class InvalidRequestError(TipRecorderError):
    """Submission is missing required fields or carries invalid values."""


class TransactionVerificationFailedError(TipRecorderError):
    """The chain reports the submitted transaction as failed."""


# ── Profiles ──────────────────────────────────────────────────────────────────


class ProfileError(Exception):
    """Base exception for creator profile errors."""


class ProfileValidationError(ProfileError):
    """Profile input is invalid."""


class VanityUrlTakenError(ProfileError):
    """Another creator already owns this vanity URL."""
