"""Tip ledger: the durable, append-only store of recorded tips."""

from datetime import UTC, datetime
from decimal import Decimal

import structlog
from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Tips
from tipjar.services._helpers import (
    AMOUNT_QUANTUM,
    new_id,
    normalize_tx_hash,
    now_iso,
    parse_iso,
    to_decimal,
)
from tipjar.services._types import TipDict
from tipjar.services.errors import (
    DuplicateTransactionError,
    StorageFailureError,
    TipValidationError,
)
from tipjar.services.schemas.results import LedgerAggregate
from tipjar.services.schemas.tips import TipInput

logger = structlog.get_logger(__name__)

_REQUIRED_FIELDS: tuple[str, ...] = (
    "sender_address",
    "receiver_address",
    "currency",
    "transaction_hash",
)


def tip_to_dict(tip: Tips) -> TipDict:
    return TipDict(
        tip_id=tip.tip_id,
        sender_address=tip.sender_address,
        receiver_address=tip.receiver_address,
        amount=float(tip.amount),
        currency=tip.currency,
        message=tip.message,
        timestamp=tip.timestamp,
        transaction_hash=tip.transaction_hash,
    )


class TipLedger:
    """Insert-if-new, list and aggregate over the `tips` table.

    Rows are never updated or deleted. `transaction_hash` uniqueness is left
    to the database constraint so concurrent submissions of one hash cannot
    both land.
    """

    def __init__(self, session: Session) -> None:
        self.session: Session = session

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(tip: TipInput) -> None:
        missing: list[str] = [
            f for f in _REQUIRED_FIELDS if not str(getattr(tip, f) or "").strip()
        ]
        if missing:
            raise TipValidationError(f"Missing required fields: {', '.join(missing)}")
        try:
            amount: Decimal = to_decimal(tip.amount)
        except ValueError as e:
            raise TipValidationError(str(e)) from e
        if tip.amount is None or not amount.is_finite() or amount <= 0:
            raise TipValidationError(f"Amount must be a positive number, got {tip.amount}")

    def insert_tip(self, tip: TipInput) -> Tips:
        """Persist a tip and commit. Raises DuplicateTransactionError on a known hash."""
        self._validate(tip)

        row: Tips = Tips(
            tip_id=new_id(),
            sender_address=tip.sender_address.strip(),
            receiver_address=tip.receiver_address.strip(),
            amount=float(to_decimal(tip.amount)),
            currency=tip.currency.strip(),
            message=tip.message,
            timestamp=now_iso(),
            transaction_hash=normalize_tx_hash(tip.transaction_hash),
        )
        try:
            self.session.add(row)
            self.session.flush()
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            try:
                existing: Tips | None = self.get_by_transaction_hash(row.transaction_hash)
            except SQLAlchemyError as lookup_error:
                logger.exception("Duplicate lookup failed", tx_hash=row.transaction_hash)
                raise StorageFailureError(
                    f"Tip insert rejected and lookup failed: {lookup_error}"
                ) from lookup_error
            if existing is not None:
                raise DuplicateTransactionError(row.transaction_hash, existing) from e
            logger.exception("Tip insert violated a constraint", tx_hash=row.transaction_hash)
            raise StorageFailureError(f"Tip insert rejected by database: {e.orig}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Tip insert failed", tx_hash=row.transaction_hash)
            raise StorageFailureError(f"Tip insert failed: {e}") from e

        logger.info(
            "Tip recorded",
            tip_id=row.tip_id,
            tx_hash=row.transaction_hash,
            receiver=row.receiver_address,
            amount=str(tip.amount),
        )
        return row

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_transaction_hash(self, transaction_hash: str) -> Tips | None:
        stmt: Select[tuple[Tips]] = select(Tips).where(
            Tips.transaction_hash == normalize_tx_hash(transaction_hash)
        )
        return self.session.scalar(stmt)

    def list_tips_by_receiver(self, address: str, limit: int | None = None) -> list[Tips]:
        stmt: Select[tuple[Tips]] = (
            select(Tips)
            .where(Tips.receiver_address == address)
            .order_by(Tips.timestamp.desc(), Tips.tip_id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt).all())

    def aggregate_by_receiver(
        self, address: str, since: datetime | None = None
    ) -> LedgerAggregate:
        """Count, volume, distinct senders and first/last tip time for a receiver."""
        conditions = [Tips.receiver_address == address]
        if since is not None:
            cutoff: str = since.astimezone(UTC).isoformat(timespec="microseconds")
            conditions.append(Tips.timestamp >= cutoff)

        stmt = select(
            func.count(Tips.tip_id),
            func.sum(Tips.amount),
            func.count(func.distinct(Tips.sender_address)),
            func.min(Tips.timestamp),
            func.max(Tips.timestamp),
        ).where(and_(*conditions))
        count, total, senders, earliest, latest = self.session.execute(stmt).one()

        return LedgerAggregate(
            count=int(count or 0),
            total_amount=to_decimal(total or 0).quantize(AMOUNT_QUANTUM),
            unique_senders=int(senders or 0),
            earliest=parse_iso(earliest),
            latest=parse_iso(latest),
        )
