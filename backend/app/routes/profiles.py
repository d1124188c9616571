"""Creator profile endpoints: thin routes, logic in services."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.schemas.common import ErrorResponse
from app.schemas.profiles import ProfileCreate, ProfileResponse
from tipjar.services._types import ProfileDict
from tipjar.services.errors import ProfileValidationError, VanityUrlTakenError
from tipjar.services.profile_service import ProfileService

router: APIRouter = APIRouter(
    prefix="/api",
    tags=["profiles"],
    responses={400: {"model": ErrorResponse}},
)


@router.post("/profile", response_model=ProfileResponse)
def create_profile(
    body: ProfileCreate,
    db: Session = Depends(get_db),
) -> ProfileDict:
    svc: ProfileService = ProfileService(db)
    try:
        return svc.create_profile(
            wallet_address=body.wallet_address,
            display_name=body.display_name,
            bio=body.bio,
            farcaster_id=body.farcaster_id,
        )
    except ProfileValidationError as e:
        raise HTTPException(400, detail=str(e)) from e
    except VanityUrlTakenError as e:
        raise HTTPException(409, detail=str(e)) from e


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    vanity_url: str | None = Query(None, alias="vanityUrl"),
    address: str | None = Query(None),
    db: Session = Depends(get_db),
) -> ProfileDict:
    if not vanity_url and not address:
        raise HTTPException(400, detail="Either vanityUrl or address parameter is required")
    svc: ProfileService = ProfileService(db)
    profile: ProfileDict | None = (
        svc.get_profile_by_vanity_url(vanity_url)
        if vanity_url
        else svc.get_profile_by_address(address or "")
    )
    if profile is None:
        raise HTTPException(404, detail="Profile not found")
    return profile
