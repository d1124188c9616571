"""SQLAlchemy ORM models, mirroring migrations/*.sql.

Keep both in sync when the schema changes.
"""

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    MetaData,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


class Tips(Base):
    __tablename__ = "tips"

    tip_id: Mapped[str] = mapped_column(primary_key=True)
    sender_address: Mapped[str] = mapped_column(nullable=False)
    receiver_address: Mapped[str] = mapped_column(nullable=False)
    amount: Mapped[float] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(nullable=False, default="USDC")
    message: Mapped[str | None] = mapped_column()
    timestamp: Mapped[str] = mapped_column(nullable=False)
    transaction_hash: Mapped[str] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("transaction_hash"),
        CheckConstraint("amount > 0", name="amount_positive"),
        Index("ix_tips_receiver_timestamp", "receiver_address", "timestamp"),
    )


class Users(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(primary_key=True)
    wallet_address: Mapped[str] = mapped_column(nullable=False)
    farcaster_id: Mapped[str | None] = mapped_column()
    created_at: Mapped[str] = mapped_column(nullable=False)

    __table_args__ = (UniqueConstraint("wallet_address"),)
    profiles = relationship(
        "CreatorProfiles",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class CreatorProfiles(Base):
    __tablename__ = "creator_profiles"

    creator_id: Mapped[str] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.user_id"),
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(nullable=False)
    bio: Mapped[str | None] = mapped_column()
    vanity_url: Mapped[str] = mapped_column(nullable=False)
    created_at: Mapped[str] = mapped_column(nullable=False)

    __table_args__ = (UniqueConstraint("vanity_url"),)
    user = relationship("Users", back_populates="profiles")
