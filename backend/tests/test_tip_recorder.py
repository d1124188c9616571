"""Tests for tipjar.services.tip_recorder."""

from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.enums import VerificationOutcome
from db.models import Tips
from tipjar.services.errors import (
    InvalidRequestError,
    MalformedResponseError,
    TransactionVerificationFailedError,
    UpstreamUnavailableError,
)
from tipjar.services.schemas.chain import TransactionVerification
from tipjar.services.schemas.results import RecordResult
from tipjar.services.schemas.tips import TipSubmission
from tipjar.services.tip_ledger import TipLedger
from tipjar.services.tip_recorder import TipRecorder


@dataclass
class _StubVerifier:
    result: TransactionVerification | None = None
    error: Exception | None = None
    is_configured: bool = True
    calls: list[str] = field(default_factory=list)

    def verify_transaction(self, tx_hash: str) -> TransactionVerification | None:
        self.calls.append(tx_hash)
        if self.error is not None:
            raise self.error
        return self.result


def _verification(tx_hash: str, success: bool) -> TransactionVerification:
    return TransactionVerification(
        tx_hash=tx_hash,
        success=success,
        from_address="0xsender",
        to_address="0xtoken",
        value=Decimal(0),
        timestamp=None,
    )


def _submission(receiver: str, **overrides: object) -> TipSubmission:
    defaults: dict[str, object] = {
        "sender_address": "0xsender",
        "receiver_address": receiver,
        "amount": Decimal("2.5"),
        "currency": "USDC",
        "transaction_hash": "0xfeed",
        "message": "thanks for the stream",
    }
    defaults.update(overrides)
    return TipSubmission(**defaults)  # type: ignore[arg-type]


def _count_tips(session: Session) -> int:
    return session.scalar(select(func.count(Tips.tip_id))) or 0


class TestValidate:
    def test_missing_fields_named(self, receiver: str) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            TipRecorder.validate(_submission(receiver, sender_address=None, transaction_hash=""))
        assert "senderAddress" in str(exc_info.value)
        assert "transactionHash" in str(exc_info.value)

    @pytest.mark.parametrize("amount", [Decimal(0), Decimal("-3"), Decimal("NaN")])
    def test_bad_amount(self, receiver: str, amount: Decimal) -> None:
        with pytest.raises(InvalidRequestError):
            TipRecorder.validate(_submission(receiver, amount=amount))

    def test_strips_fields(self, receiver: str) -> None:
        tip_input = TipRecorder.validate(_submission(f"  {receiver} ", currency=" USDC "))
        assert tip_input.receiver_address == receiver
        assert tip_input.currency == "USDC"


class TestRecordTip:
    def test_verified(self, session: Session, receiver: str) -> None:
        verifier: _StubVerifier = _StubVerifier(result=_verification("0xfeed", True))
        recorder: TipRecorder = TipRecorder(TipLedger(session), verifier)

        result: RecordResult = recorder.record_tip(_submission(receiver))

        assert result.created is True
        assert result.verification == VerificationOutcome.VERIFIED
        assert result.tip.transaction_hash == "0xfeed"
        assert verifier.calls == ["0xfeed"]
        assert _count_tips(session) == 1

    def test_failed_onchain_rejects_and_persists_nothing(
        self, session: Session, receiver: str
    ) -> None:
        verifier: _StubVerifier = _StubVerifier(result=_verification("0xfeed", False))
        recorder: TipRecorder = TipRecorder(TipLedger(session), verifier)

        with pytest.raises(TransactionVerificationFailedError):
            recorder.record_tip(_submission(receiver))
        assert _count_tips(session) == 0

    @pytest.mark.parametrize(
        "error",
        [UpstreamUnavailableError("timed out"), MalformedResponseError("not json")],
    )
    def test_indexer_failure_still_records(
        self, session: Session, receiver: str, error: Exception
    ) -> None:
        recorder: TipRecorder = TipRecorder(TipLedger(session), _StubVerifier(error=error))

        result: RecordResult = recorder.record_tip(_submission(receiver))

        assert result.created is True
        assert result.verification == VerificationOutcome.UNAVAILABLE
        assert _count_tips(session) == 1

    def test_not_indexed_still_records(self, session: Session, receiver: str) -> None:
        recorder: TipRecorder = TipRecorder(TipLedger(session), _StubVerifier(result=None))
        result: RecordResult = recorder.record_tip(_submission(receiver))
        assert result.verification == VerificationOutcome.NOT_FOUND
        assert _count_tips(session) == 1

    def test_skipped_without_verifier(self, session: Session, receiver: str) -> None:
        result: RecordResult = TipRecorder(TipLedger(session)).record_tip(_submission(receiver))
        assert result.verification == VerificationOutcome.SKIPPED

    def test_skipped_when_unconfigured(self, session: Session, receiver: str) -> None:
        verifier: _StubVerifier = _StubVerifier(is_configured=False)
        result: RecordResult = TipRecorder(TipLedger(session), verifier).record_tip(
            _submission(receiver)
        )
        assert result.verification == VerificationOutcome.SKIPPED
        assert verifier.calls == []

    def test_skipped_when_disabled(self, session: Session, receiver: str) -> None:
        verifier: _StubVerifier = _StubVerifier(result=_verification("0xfeed", False))
        recorder: TipRecorder = TipRecorder(
            TipLedger(session), verifier, verify_transactions=False
        )
        result: RecordResult = recorder.record_tip(_submission(receiver))
        assert result.verification == VerificationOutcome.SKIPPED
        assert verifier.calls == []

    def test_resubmission_returns_existing(self, session: Session, receiver: str) -> None:
        recorder: TipRecorder = TipRecorder(TipLedger(session))
        first: RecordResult = recorder.record_tip(_submission(receiver))
        second: RecordResult = recorder.record_tip(
            _submission(receiver, amount=Decimal(99), message="edited")
        )

        assert second.created is False
        assert second.tip.tip_id == first.tip.tip_id
        assert second.tip.amount == 2.5
        assert _count_tips(session) == 1

    def test_invalid_submission_never_reaches_verifier(
        self, session: Session, receiver: str
    ) -> None:
        verifier: _StubVerifier = _StubVerifier()
        recorder: TipRecorder = TipRecorder(TipLedger(session), verifier)
        with pytest.raises(InvalidRequestError):
            recorder.record_tip(_submission(receiver, amount=None))
        assert verifier.calls == []
        assert _count_tips(session) == 0
