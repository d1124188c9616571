"""Creator profile schemas."""

from pydantic import AliasChoices, Field

from app.schemas.common import CamelModel


class ProfileCreate(CamelModel):
    wallet_address: str = Field(
        validation_alias=AliasChoices("walletAddress", "baseWalletAddress", "wallet_address"),
    )
    display_name: str = Field(min_length=1, max_length=64)
    bio: str | None = Field(default=None, max_length=500)
    farcaster_id: str | None = None


class ProfileResponse(CamelModel):
    creator_id: str
    user_id: str
    display_name: str
    bio: str | None
    vanity_url: str
    wallet_address: str
    created_at: str
