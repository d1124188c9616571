"""Creator profiles: wallet users, display names, vanity URLs."""

import structlog
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import CreatorProfiles, Users
from tipjar.services._helpers import new_id, now_iso, vanity_slug
from tipjar.services._types import ProfileDict
from tipjar.services.errors import ProfileValidationError, VanityUrlTakenError

logger = structlog.get_logger(__name__)


def _profile_dict(profile: CreatorProfiles, wallet_address: str) -> ProfileDict:
    return ProfileDict(
        creator_id=profile.creator_id,
        user_id=profile.user_id,
        display_name=profile.display_name,
        bio=profile.bio,
        vanity_url=profile.vanity_url,
        wallet_address=wallet_address,
        created_at=profile.created_at,
    )


class ProfileService:
    """Resolves creators by vanity URL or wallet address."""

    def __init__(self, session: Session) -> None:
        self.session: Session = session

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def _get_user_by_address(self, wallet_address: str) -> Users | None:
        stmt: Select[tuple[Users]] = select(Users).where(Users.wallet_address == wallet_address)
        return self.session.scalar(stmt)

    def _get_or_create_user(self, wallet_address: str, farcaster_id: str | None) -> Users:
        user: Users | None = self._get_user_by_address(wallet_address)
        if user is not None:
            return user
        user = Users(
            user_id=new_id(),
            wallet_address=wallet_address,
            farcaster_id=farcaster_id,
            created_at=now_iso(),
        )
        try:
            self.session.add(user)
            self.session.flush()
        except IntegrityError:
            # Another request registered this wallet between the lookup and the insert
            self.session.rollback()
            existing: Users | None = self._get_user_by_address(wallet_address)
            if existing is None:
                raise
            return existing
        return user

    # ------------------------------------------------------------------
    # Route-facing methods
    # ------------------------------------------------------------------

    def create_profile(
        self,
        wallet_address: str,
        display_name: str,
        bio: str | None = None,
        farcaster_id: str | None = None,
    ) -> ProfileDict:
        wallet_address = wallet_address.strip()
        display_name = display_name.strip()
        if not wallet_address or not display_name:
            raise ProfileValidationError("Wallet address and display name are required")
        slug: str = vanity_slug(display_name)
        if not slug:
            raise ProfileValidationError(f"Display name '{display_name}' yields an empty vanity URL")

        user: Users = self._get_or_create_user(wallet_address, farcaster_id)
        profile: CreatorProfiles = CreatorProfiles(
            creator_id=new_id(),
            user_id=user.user_id,
            display_name=display_name,
            bio=bio,
            vanity_url=slug,
            created_at=now_iso(),
        )
        try:
            self.session.add(profile)
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise VanityUrlTakenError(f"Vanity URL '{slug}' is already taken") from e

        logger.info("Creator profile created", vanity_url=slug, wallet=wallet_address)
        return _profile_dict(profile, user.wallet_address)

    def get_profile_by_vanity_url(self, vanity_url: str) -> ProfileDict | None:
        stmt = (
            select(CreatorProfiles, Users.wallet_address)
            .join(Users, Users.user_id == CreatorProfiles.user_id)
            .where(CreatorProfiles.vanity_url == vanity_url.strip().lower())
        )
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        profile, wallet = row
        return _profile_dict(profile, wallet)

    def get_profile_by_address(self, wallet_address: str) -> ProfileDict | None:
        stmt = (
            select(CreatorProfiles)
            .join(Users, Users.user_id == CreatorProfiles.user_id)
            .where(Users.wallet_address == wallet_address.strip())
            .order_by(CreatorProfiles.created_at)
            .limit(1)
        )
        profile: CreatorProfiles | None = self.session.scalar(stmt)
        if profile is None:
            return None
        return _profile_dict(profile, wallet_address.strip())
