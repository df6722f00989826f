"""Persistence for payments, tips, offer fees and payout requests."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from apex.db.models import (
    BoutOffer,
    Event,
    PayoutRequest,
    StreamPayment,
    StreamTip,
)
from apex.db.repositories.base import BaseRepository
from apex.services.balances import (
    ExistingRequest,
    FeeCharge,
    PaymentRecord,
    Tip,
    calculate_platform_fee,
    parse_allocations,
)
from apex.settings import DEFAULT_PLATFORM_FEE_PERCENTAGE


def to_existing_request(request: PayoutRequest) -> ExistingRequest:
    return ExistingRequest(
        amount_requested=request.amount_requested or 0, status=request.status
    )


class PayoutRepository(BaseRepository):
    """Load balance inputs and manage :class:`PayoutRequest` rows.

    Fee columns left NULL have not been charged yet; they are derived from
    ``platform_fee_percentage`` of the gross amount.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        platform_fee_percentage: int = DEFAULT_PLATFORM_FEE_PERCENTAGE,
    ) -> None:
        super().__init__(session)
        self._fee_percentage = platform_fee_percentage

    def _fee(self, stored: int | None, gross: int | None) -> int:
        if stored is not None:
            return stored
        return calculate_platform_fee(gross or 0, self._fee_percentage)

    async def list_events_owned_by(self, profile_id: str) -> list[Event]:
        stmt = (
            select(Event)
            .where(Event.owner_profile_id == profile_id)
            .order_by(Event.event_date.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_events(self, event_ids: Sequence[str]) -> list[Event]:
        if not event_ids:
            return []
        stmt = select(Event).where(Event.id.in_(list(event_ids)))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_payments(
        self, *, event_ids: Sequence[str] | None = None
    ) -> list[PaymentRecord]:
        """Return stream payments, optionally restricted to ``event_ids``.

        Allocations live in a JSON column, so fighter filtering happens in the
        balance calculator rather than in SQL.
        """

        stmt = select(
            StreamPayment.event_id,
            StreamPayment.amount_paid,
            StreamPayment.platform_fee,
            StreamPayment.fighter_allocations,
        )
        if event_ids is not None:
            if not event_ids:
                return []
            stmt = stmt.where(StreamPayment.event_id.in_(list(event_ids)))
        result = await self._session.execute(stmt)
        return [
            PaymentRecord(
                event_id=row.event_id,
                amount_paid=row.amount_paid or 0,
                platform_fee=self._fee(row.platform_fee, row.amount_paid),
                allocations=parse_allocations(row.fighter_allocations),
            )
            for row in result.all()
        ]

    async def list_tips(
        self, fighter_id: str, *, event_id: str | None = None
    ) -> list[Tip]:
        stmt = select(StreamTip.fighter_id, StreamTip.amount, StreamTip.event_id).where(
            StreamTip.fighter_id == fighter_id
        )
        if event_id is not None:
            stmt = stmt.where(StreamTip.event_id == event_id)
        result = await self._session.execute(stmt)
        return [
            Tip(fighter_id=row.fighter_id, amount=row.amount or 0, event_id=row.event_id)
            for row in result.all()
        ]

    async def list_offer_fees(
        self, fighter_id: str, *, event_id: str | None = None
    ) -> list[tuple[str, FeeCharge]]:
        """Return ``(event_id, FeeCharge)`` pairs for offers addressed to the fighter."""

        stmt = select(
            BoutOffer.event_id, BoutOffer.amount, BoutOffer.platform_fee, BoutOffer.status
        ).where(BoutOffer.fighter_id == fighter_id)
        if event_id is not None:
            stmt = stmt.where(BoutOffer.event_id == event_id)
        result = await self._session.execute(stmt)
        return [
            (
                row.event_id,
                FeeCharge(
                    amount=self._fee(row.platform_fee, row.amount), offer_status=row.status
                ),
            )
            for row in result.all()
        ]

    async def list_requests(
        self,
        *,
        recipient_type: str,
        recipient_profile_id: str,
        event_ids: Sequence[str] | None = None,
    ) -> list[PayoutRequest]:
        stmt = (
            select(PayoutRequest)
            .where(PayoutRequest.recipient_type == recipient_type)
            .where(PayoutRequest.recipient_profile_id == recipient_profile_id)
            .order_by(PayoutRequest.created_at.desc())
        )
        if event_ids is not None:
            if not event_ids:
                return []
            stmt = stmt.where(PayoutRequest.event_id.in_(list(event_ids)))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_actionable_requests(
        self,
        *,
        recipient_type: str,
        event_ids: Sequence[str] | None = None,
    ) -> list[PayoutRequest]:
        stmt = (
            select(PayoutRequest)
            .options(
                selectinload(PayoutRequest.event),
                selectinload(PayoutRequest.recipient),
            )
            .where(PayoutRequest.recipient_type == recipient_type)
            .where(PayoutRequest.status.in_(["pending", "approved"]))
            .order_by(PayoutRequest.created_at.desc())
        )
        if event_ids is not None:
            if not event_ids:
                return []
            stmt = stmt.where(PayoutRequest.event_id.in_(list(event_ids)))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_request(self, request_id: str) -> PayoutRequest | None:
        stmt = (
            select(PayoutRequest)
            .options(
                selectinload(PayoutRequest.event),
                selectinload(PayoutRequest.recipient),
            )
            .where(PayoutRequest.id == request_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_request(
        self,
        *,
        recipient_type: str,
        recipient_profile_id: str,
        event_id: str,
        amount_requested: int,
    ) -> PayoutRequest:
        request = PayoutRequest(
            recipient_type=recipient_type,
            recipient_profile_id=recipient_profile_id,
            event_id=event_id,
            amount_requested=amount_requested,
            status="pending",
        )
        self._session.add(request)
        await self._session.flush()
        return request

    async def update_status(
        self,
        request: PayoutRequest,
        *,
        status: str,
        processed_by: str,
        stripe_transfer_id: str | None = None,
        failure_reason: str | None = None,
    ) -> PayoutRequest:
        now = datetime.now(UTC)
        request.status = status
        request.processed_by = processed_by
        request.processed_at = now
        request.updated_at = now
        if stripe_transfer_id is not None:
            request.stripe_transfer_id = stripe_transfer_id
        if failure_reason is not None:
            request.failure_reason = failure_reason
        await self._session.flush()
        return request


__all__ = ["PayoutRepository", "to_existing_request"]
