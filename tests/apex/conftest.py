"""Shared fixtures: an in-memory ledger database and a fake Stripe processor."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from datetime import UTC, date, datetime
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from apex.db.models import (
    Base,
    BoutOffer,
    Event,
    EventBout,
    FightHistoryEntry,
    PayoutRequest,
    Profile,
    StreamPayment,
    StreamTip,
)
from apex.services.errors import PaymentProcessorError
from apex.services.payment_processor import ConnectedAccount, TransferResult


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Provide an in-memory SQLite session for integration-style tests."""
    pytest.importorskip("aiosqlite")
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
    await engine.dispose()


class LedgerSeed:
    """Insert rows with sensible defaults so tests only spell out what matters."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _add(self, row: Any) -> Any:
        self._session.add(row)
        await self._session.flush()
        return row

    async def profile(self, profile_id: str, role: str = "fighter", **values: Any) -> Profile:
        values.setdefault("full_name", profile_id.replace("-", " ").title())
        return await self._add(Profile(id=profile_id, role=role, **values))

    async def onboarded(self, profile_id: str, role: str = "fighter", **values: Any) -> Profile:
        return await self.profile(
            profile_id,
            role,
            stripe_account_id=f"acct_{profile_id.replace('-', '')}",
            stripe_account_status="active",
            stripe_onboarding_completed=True,
            **values,
        )

    async def event(
        self,
        owner: Profile,
        event_id: str = "event-1",
        *,
        title: str = "Fight Night 1",
        event_date: date | None = date(2026, 3, 14),
    ) -> Event:
        return await self._add(
            Event(
                id=event_id,
                title=title,
                owner_profile_id=owner.id,
                event_date=event_date,
            )
        )

    async def bout(
        self,
        event: Event,
        *,
        red: Profile | None = None,
        blue: Profile | None = None,
        winner_side: str | None = None,
        created_at: datetime | None = None,
    ) -> EventBout:
        return await self._add(
            EventBout(
                event_id=event.id,
                red_fighter_id=red.id if red else None,
                blue_fighter_id=blue.id if blue else None,
                winner_side=winner_side,
                created_at=created_at or datetime.now(UTC),
            )
        )

    async def fight(
        self, fighter: Profile, result: str, event_date: date, **values: Any
    ) -> FightHistoryEntry:
        values.setdefault("event_name", "Regional Card")
        values.setdefault("opponent_name", "Some Opponent")
        return await self._add(
            FightHistoryEntry(
                fighter_profile_id=fighter.id,
                result=result,
                event_date=event_date,
                **values,
            )
        )

    async def payment(
        self,
        event: Event,
        amount_paid: int,
        *,
        platform_fee: int | None = 0,
        allocations: Sequence[Mapping[str, Any]] = (),
    ) -> StreamPayment:
        return await self._add(
            StreamPayment(
                event_id=event.id,
                amount_paid=amount_paid,
                platform_fee=platform_fee,
                fighter_allocations=[dict(item) for item in allocations],
            )
        )

    async def tip(self, event: Event, fighter: Profile, amount: int) -> StreamTip:
        return await self._add(
            StreamTip(event_id=event.id, fighter_id=fighter.id, amount=amount)
        )

    async def offer(
        self,
        event: Event,
        fighter: Profile,
        *,
        platform_fee: int | None,
        status: str,
        amount: int | None = None,
    ) -> BoutOffer:
        return await self._add(
            BoutOffer(
                event_id=event.id,
                fighter_id=fighter.id,
                amount=amount if amount is not None else (platform_fee or 0) * 20,
                platform_fee=platform_fee,
                status=status,
            )
        )

    async def payout_request(
        self,
        event: Event,
        recipient: Profile,
        amount: int,
        *,
        status: str = "pending",
        recipient_type: str = "fighter",
    ) -> PayoutRequest:
        return await self._add(
            PayoutRequest(
                event_id=event.id,
                recipient_profile_id=recipient.id,
                recipient_type=recipient_type,
                amount_requested=amount,
                status=status,
            )
        )


@pytest.fixture
def seed(session: AsyncSession) -> LedgerSeed:
    return LedgerSeed(session)


class FakeProcessor:
    """In-memory stand-in for :class:`apex.services.payment_processor.StripeClient`."""

    def __init__(self) -> None:
        self.transfers: list[dict[str, Any]] = []
        self.accounts_checked: list[str] = []
        self.ready = True
        self.transfer_error: PaymentProcessorError | None = None

    async def create_transfer(
        self,
        *,
        amount: int,
        currency: str,
        destination: str,
        metadata: Mapping[str, str],
        idempotency_key: str | None = None,
    ) -> TransferResult:
        if self.transfer_error is not None:
            raise self.transfer_error
        self.transfers.append(
            {
                "amount": amount,
                "currency": currency,
                "destination": destination,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
            }
        )
        return TransferResult(
            id=f"tr_{len(self.transfers)}",
            amount=amount,
            destination=destination,
            currency=currency,
        )

    async def retrieve_account(self, account_id: str) -> ConnectedAccount:
        self.accounts_checked.append(account_id)
        return ConnectedAccount(
            id=account_id, payouts_enabled=self.ready, details_submitted=self.ready
        )


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()
