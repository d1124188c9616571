"""Tip recorder: the only write path for tips.

Policy for on-chain verification before a tip is persisted:

    indexer says success=false        -> reject (TransactionVerificationFailedError)
    indexer says success=true         -> persist, VERIFIED
    indexer has no such transaction   -> persist, NOT_FOUND (indexing lags broadcast)
    indexer down / garbled / timeout  -> persist, UNAVAILABLE
    no indexer configured or disabled -> persist, SKIPPED

The signed transfer is the ground truth; the indexer is a quality signal.
"""

from decimal import Decimal
from typing import Protocol

import structlog

from db.enums import VerificationOutcome
from tipjar.services._helpers import to_decimal
from tipjar.services.errors import (
    ChainQueryError,
    DuplicateTransactionError,
    InvalidRequestError,
    TipValidationError,
    TransactionVerificationFailedError,
)
from tipjar.services.schemas.chain import TransactionVerification
from tipjar.services.schemas.results import RecordResult
from tipjar.services.schemas.tips import TipInput, TipSubmission
from tipjar.services.tip_ledger import TipLedger

logger = structlog.get_logger(__name__)


class TransactionVerifier(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def verify_transaction(self, tx_hash: str) -> TransactionVerification | None: ...


class TipRecorder:
    """Validates a submission, applies the verification policy, persists once."""

    def __init__(
        self,
        ledger: TipLedger,
        verifier: TransactionVerifier | None = None,
        verify_transactions: bool = True,
    ) -> None:
        self.ledger: TipLedger = ledger
        self.verifier: TransactionVerifier | None = verifier
        self.verify_transactions: bool = verify_transactions

    @staticmethod
    def validate(submission: TipSubmission) -> TipInput:
        required: dict[str, object] = {
            "senderAddress": submission.sender_address,
            "receiverAddress": submission.receiver_address,
            "amount": submission.amount,
            "currency": submission.currency,
            "transactionHash": submission.transaction_hash,
        }
        missing: list[str] = [k for k, v in required.items() if v is None or str(v).strip() == ""]
        if missing:
            raise InvalidRequestError(f"Missing required fields: {', '.join(missing)}")

        try:
            amount: Decimal = to_decimal(submission.amount)
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e
        if not amount.is_finite() or amount <= 0:
            raise InvalidRequestError(f"Amount must be positive, got {submission.amount}")

        return TipInput(
            sender_address=str(submission.sender_address).strip(),
            receiver_address=str(submission.receiver_address).strip(),
            amount=amount,
            currency=str(submission.currency).strip(),
            transaction_hash=str(submission.transaction_hash).strip(),
            message=submission.message,
        )

    def verify(self, tx_hash: str) -> VerificationOutcome:
        """Apply the verification policy. Raises only on a confirmed on-chain failure."""
        if not self.verify_transactions or self.verifier is None or not self.verifier.is_configured:
            return VerificationOutcome.SKIPPED

        try:
            result: TransactionVerification | None = self.verifier.verify_transaction(tx_hash)
        except ChainQueryError as e:
            logger.warning(
                "Verification unavailable, recording on client proof",
                tx_hash=tx_hash,
                error=str(e),
                error_type=type(e).__name__,
            )
            return VerificationOutcome.UNAVAILABLE

        if result is None:
            logger.warning("Transaction not indexed yet, recording on client proof", tx_hash=tx_hash)
            return VerificationOutcome.NOT_FOUND

        if not result.success:
            logger.warning("Transaction failed on-chain, rejecting tip", tx_hash=tx_hash)
            raise TransactionVerificationFailedError(
                f"Transaction {tx_hash} did not succeed on-chain"
            )

        return VerificationOutcome.VERIFIED

    def record_tip(self, submission: TipSubmission) -> RecordResult:
        tip_input: TipInput = self.validate(submission)
        outcome: VerificationOutcome = self.verify(tip_input.transaction_hash)

        try:
            tip = self.ledger.insert_tip(tip_input)
        except DuplicateTransactionError as e:
            logger.info("Tip already recorded, returning existing", tx_hash=e.transaction_hash)
            existing = e.existing or self.ledger.get_by_transaction_hash(e.transaction_hash)
            if existing is None:
                raise
            return RecordResult(tip=existing, created=False, verification=outcome)
        except TipValidationError as e:
            raise InvalidRequestError(str(e)) from e

        return RecordResult(tip=tip, created=True, verification=outcome)
