"""Tip request/response schemas."""

from decimal import Decimal

from pydantic import Field

from app.schemas.common import CamelModel
from tipjar.services.schemas.tips import TipSubmission

MAX_MESSAGE_LENGTH = 280


class TipCreate(CamelModel):
    sender_address: str
    receiver_address: str
    amount: Decimal
    currency: str
    message: str | None = Field(default=None, max_length=MAX_MESSAGE_LENGTH)
    transaction_hash: str

    def to_submission(self) -> TipSubmission:
        return TipSubmission(
            sender_address=self.sender_address,
            receiver_address=self.receiver_address,
            amount=self.amount,
            currency=self.currency,
            transaction_hash=self.transaction_hash,
            message=self.message,
        )


class TipResponse(CamelModel):
    tip_id: str
    sender_address: str
    receiver_address: str
    amount: float
    currency: str
    message: str | None
    timestamp: str
    transaction_hash: str


class OnChainTransferResponse(CamelModel):
    transaction_hash: str
    sender_address: str
    receiver_address: str
    amount: float
    currency: str
    timestamp: str | None
