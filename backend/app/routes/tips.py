"""Tip endpoints: thin routes, logic in services."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.dependencies import get_chain_client, get_db
from app.schemas.common import ErrorResponse
from app.schemas.tips import OnChainTransferResponse, TipCreate, TipResponse
from config import get_settings
from tipjar.services._types import OnChainTransferDict, TipDict
from tipjar.services.chain_client import ChainQueryClient
from tipjar.services.errors import (
    InvalidRequestError,
    MalformedResponseError,
    StorageFailureError,
    TransactionVerificationFailedError,
    UpstreamUnavailableError,
)
from tipjar.services.schemas.chain import OnChainTransfer
from tipjar.services.schemas.results import RecordResult
from tipjar.services.tip_ledger import TipLedger, tip_to_dict
from tipjar.services.tip_recorder import TipRecorder

router: APIRouter = APIRouter(
    prefix="/api",
    tags=["tips"],
    responses={400: {"model": ErrorResponse}},
)

STORAGE_FAILURE_DETAIL = (
    "Failed to record tip; the outcome is unknown. "
    "Resubmitting with the same transaction hash is safe."
)


@router.post("/tips", response_model=TipResponse)
def record_tip(
    body: TipCreate,
    response: Response,
    db: Session = Depends(get_db),
    chain: ChainQueryClient | None = Depends(get_chain_client),
) -> TipDict:
    recorder: TipRecorder = TipRecorder(
        TipLedger(db),
        chain,
        verify_transactions=get_settings().verify_transactions,
    )
    try:
        result: RecordResult = recorder.record_tip(body.to_submission())
    except InvalidRequestError as e:
        raise HTTPException(400, detail=str(e)) from e
    except TransactionVerificationFailedError as e:
        raise HTTPException(400, detail="Transaction verification failed") from e
    except StorageFailureError as e:
        raise HTTPException(500, detail=STORAGE_FAILURE_DETAIL) from e

    response.headers["X-Tip-Verification"] = result.verification.value
    if not result.created:
        response.headers["Idempotent-Replay"] = "true"
    return tip_to_dict(result.tip)


@router.get("/tips", response_model=list[TipResponse])
def list_tips(
    address: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[TipDict]:
    if not address:
        raise HTTPException(400, detail="Address parameter is required")
    ledger: TipLedger = TipLedger(db)
    return [tip_to_dict(t) for t in ledger.list_tips_by_receiver(address, limit)]


@router.get("/tips/onchain", response_model=list[OnChainTransferResponse])
def list_onchain_transfers(
    address: str | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    chain: ChainQueryClient | None = Depends(get_chain_client),
) -> list[OnChainTransferDict]:
    if not address:
        raise HTTPException(400, detail="Address parameter is required")
    if chain is None or not chain.is_configured:
        raise HTTPException(503, detail="Chain indexing is not configured")
    try:
        transfers: list[OnChainTransfer] = chain.get_transfers(address, limit=limit)
    except UpstreamUnavailableError as e:
        raise HTTPException(503, detail=str(e)) from e
    except MalformedResponseError as e:
        raise HTTPException(502, detail=str(e)) from e
    return [
        OnChainTransferDict(
            transaction_hash=t.transaction_hash,
            sender_address=t.sender_address,
            receiver_address=t.receiver_address,
            amount=float(t.amount),
            currency=t.currency,
            timestamp=t.timestamp.isoformat() if t.timestamp else None,
        )
        for t in transfers
    ]
