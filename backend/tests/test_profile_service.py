"""Tests for tipjar.services.profile_service."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models import Users
from tipjar.services._types import ProfileDict
from tipjar.services.errors import ProfileValidationError, VanityUrlTakenError
from tipjar.services.profile_service import ProfileService


class TestCreateProfile:
    def test_basic_creation(self, session: Session, receiver: str) -> None:
        svc: ProfileService = ProfileService(session)
        result: ProfileDict = svc.create_profile(receiver, "Jane Doe", bio="Streams on Fridays")
        assert result["vanity_url"] == "jane-doe"
        assert result["display_name"] == "Jane Doe"
        assert result["wallet_address"] == receiver
        assert result["bio"] == "Streams on Fridays"

    def test_reuses_user_for_same_wallet(self, session: Session, receiver: str) -> None:
        svc: ProfileService = ProfileService(session)
        r1: ProfileDict = svc.create_profile(receiver, "First Channel")
        r2: ProfileDict = svc.create_profile(receiver, "Second Channel")
        assert r1["user_id"] == r2["user_id"]
        assert session.scalar(select(func.count(Users.user_id))) == 1

    def test_wallet_registered_concurrently_is_reused(
        self, session: Session, receiver: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        other: ProfileDict = ProfileService(session).create_profile(receiver, "First Channel")
        session.commit()

        svc: ProfileService = ProfileService(session)
        real_lookup = svc._get_user_by_address
        calls: list[str] = []

        def _stale_first_lookup(wallet_address: str) -> Users | None:
            # First lookup misses, as if the other insert had not committed yet
            calls.append(wallet_address)
            return None if len(calls) == 1 else real_lookup(wallet_address)

        monkeypatch.setattr(svc, "_get_user_by_address", _stale_first_lookup)
        result: ProfileDict = svc.create_profile(receiver, "Second Channel")
        assert result["user_id"] == other["user_id"]
        assert len(calls) == 2
        assert session.scalar(select(func.count(Users.user_id))) == 1

    def test_vanity_url_taken(self, session: Session, receiver: str, sender: str) -> None:
        svc: ProfileService = ProfileService(session)
        svc.create_profile(receiver, "Jane Doe")
        session.commit()
        with pytest.raises(VanityUrlTakenError):
            svc.create_profile(sender, "jane   doe")

    @pytest.mark.parametrize("name", ["", "   ", "!!!"])
    def test_unusable_display_name(self, session: Session, receiver: str, name: str) -> None:
        with pytest.raises(ProfileValidationError):
            ProfileService(session).create_profile(receiver, name)


class TestGetProfile:
    def test_by_vanity_url_case_insensitive(self, session: Session, receiver: str) -> None:
        svc: ProfileService = ProfileService(session)
        svc.create_profile(receiver, "Jane Doe")
        result: ProfileDict | None = svc.get_profile_by_vanity_url("Jane-Doe")
        assert result is not None
        assert result["wallet_address"] == receiver

    def test_by_address(self, session: Session, receiver: str) -> None:
        svc: ProfileService = ProfileService(session)
        svc.create_profile(receiver, "Jane Doe")
        result: ProfileDict | None = svc.get_profile_by_address(receiver)
        assert result is not None
        assert result["vanity_url"] == "jane-doe"

    def test_not_found(self, session: Session) -> None:
        svc: ProfileService = ProfileService(session)
        assert svc.get_profile_by_vanity_url("nobody") is None
        assert svc.get_profile_by_address("0xnobody") is None
