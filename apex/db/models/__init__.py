from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    validates,
)


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    username: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    full_name: Mapped[str | None]
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        doc="fighter, coach, gym, promotion or admin (compared case-insensitively)",
    )

    # Derived record columns written by FighterRecordService
    record: Mapped[str | None] = mapped_column(
        String(32), nullable=True, doc="Total record as 'W-L-D'"
    )
    record_base: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        doc="Record for fights outside the platform as 'W-L-D'",
    )
    last_5_form: Mapped[str | None] = mapped_column(String(5), nullable=True)
    current_win_streak: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Stripe Connect onboarding state
    stripe_account_id: Mapped[str | None] = mapped_column(String, nullable=True)
    stripe_account_status: Mapped[str | None] = mapped_column(
        String(20), nullable=True, doc="'active' once the connected account is usable"
    )
    stripe_onboarding_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    @property
    def role_normalized(self) -> str:
        return (self.role or "").strip().lower()

    @property
    def is_admin(self) -> bool:
        return self.role_normalized == "admin"

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or self.id


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String, nullable=False)
    owner_profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id"), nullable=False, index=True
    )
    event_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    owner: Mapped[Profile] = relationship("Profile")
    bouts: Mapped[list[EventBout]] = relationship("EventBout", back_populates="event")


class EventBout(Base):
    __tablename__ = "event_bouts"
    __table_args__ = (
        CheckConstraint(
            "winner_side IS NULL OR winner_side IN ('red', 'blue', 'draw', 'no_contest')",
            name="ck_event_bouts_winner_side",
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id"), nullable=False, index=True
    )
    red_fighter_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True, index=True
    )
    blue_fighter_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True, index=True
    )
    winner_side: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        doc="NULL until the result is recorded; a non-null value marks the bout resolved",
    )
    method: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )

    event: Mapped[Event] = relationship("Event", back_populates="bouts")


class FightHistoryEntry(Base):
    """Fight entered by hand on the fighter's profile."""

    __tablename__ = "fighter_fight_history"
    __table_args__ = (
        Index(
            "ix_fighter_fight_history_fighter_date", "fighter_profile_id", "event_date"
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    fighter_profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id"), nullable=False
    )
    event_name: Mapped[str] = mapped_column(String, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    opponent_name: Mapped[str] = mapped_column(String, nullable=False)
    location: Mapped[str | None]
    result: Mapped[str] = mapped_column(String(20), nullable=False)
    result_method: Mapped[str | None]
    result_round: Mapped[int | None]
    result_time: Mapped[str | None]
    weight_class: Mapped[str | None]
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    @validates("result")
    def validate_result(self, key: str, value: str) -> str:
        """Only the four recorded outcomes are accepted."""
        if value not in ("win", "loss", "draw", "no_contest"):
            raise ValueError(
                f"Invalid result '{value}'. Must be one of: win, loss, draw, no_contest"
            )
        return value


class BoutOffer(Base):
    """Offer for a bout slot; only the fee columns feed payout balances."""

    __tablename__ = "bout_offers"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id"), nullable=False, index=True
    )
    bout_id: Mapped[str | None] = mapped_column(
        ForeignKey("event_bouts.id"), nullable=True
    )
    fighter_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    platform_fee: Mapped[int | None] = mapped_column(
        Integer, nullable=True, doc="NULL until charged; derived from the configured percentage"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="pending, paid, accepted, declined or refunded",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class StreamPayment(Base):
    __tablename__ = "stream_payments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id"), nullable=False, index=True
    )
    profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True
    )
    amount_paid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    platform_fee: Mapped[int | None] = mapped_column(
        Integer, nullable=True, doc="NULL until charged; derived from the configured percentage"
    )
    fighter_allocations: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="List of {'fighter_id': str, 'amount': int} entries in cents",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class StreamTip(Base):
    __tablename__ = "stream_tips"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id"), nullable=False, index=True
    )
    fighter_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id"), nullable=False, index=True
    )
    profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class PayoutRequest(Base):
    __tablename__ = "payout_requests"
    __table_args__ = (
        Index(
            "ix_payout_requests_recipient_event",
            "recipient_type",
            "recipient_profile_id",
            "event_id",
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    recipient_type: Mapped[str] = mapped_column(
        String(20), nullable=False, doc="'fighter' or 'organizer'"
    )
    recipient_profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id"), nullable=False
    )
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id"), nullable=False, index=True
    )
    amount_requested: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True
    )
    stripe_transfer_id: Mapped[str | None] = mapped_column(String, nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_by: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    event: Mapped[Event] = relationship("Event")
    recipient: Mapped[Profile] = relationship(
        "Profile", foreign_keys=[recipient_profile_id]
    )

    @validates("recipient_type")
    def validate_recipient_type(self, key: str, value: str) -> str:
        if value not in ("fighter", "organizer"):
            raise ValueError(
                f"Invalid recipient type '{value}'. Must be one of: fighter, organizer"
            )
        return value


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id"), nullable=True
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


__all__ = [
    "Base",
    "BoutOffer",
    "Event",
    "EventBout",
    "FightHistoryEntry",
    "Notification",
    "PayoutRequest",
    "Profile",
    "StreamPayment",
    "StreamTip",
]
