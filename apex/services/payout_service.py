"""Payout workflow: earnings views, payout requests and their processing."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from apex.db.models import Event, PayoutRequest, Profile
from apex.db.repositories import NotificationRepository, PayoutRepository
from apex.db.repositories.payout_repository import to_existing_request
from apex.schemas.payout import (
    FighterEarningsResponse,
    FighterEventEarnings,
    OrganizerEarningsResponse,
    OrganizerEventEarnings,
    PayoutProcessResponse,
    PayoutRequestCreatedResponse,
    PayoutRequestResponse,
    PendingPayoutRequest,
    PendingRequestsResponse,
)
from apex.services.balances import (
    IN_FLIGHT_STATUSES,
    BalanceSummary,
    ExistingRequest,
    PaymentRecord,
    compute_fighter_balance,
    compute_organizer_balance,
    reserved_amount,
    sum_requests,
    validate_payout_amount,
)
from apex.services.errors import (
    EventNotFoundError,
    InvalidPayoutActionError,
    NotPermittedError,
    PayeeNotOnboardedError,
    PaymentProcessorError,
    PayoutAuthorizationError,
    PayoutRequestNotFoundError,
    ProcessorTransferFailedError,
)
from apex.services.payment_processor import PaymentProcessor
from apex.services.payout_state import (
    FAILED,
    PROCESSED,
    REJECTED,
    assert_actionable,
    assert_outcome_invariants,
    assert_transition,
)
from apex.services.rate_limiter import FixedWindowRateLimiter
from apex.utils.request_context import get_request_id

logger = logging.getLogger(__name__)

FIGHTER = "fighter"
ORGANIZER = "organizer"
ORGANIZER_ROLES = frozenset({"promotion", "gym"})
PROCESSED_ONLY = frozenset({PROCESSED})
ACTIVE_ACCOUNT_STATUS = "active"


def _event_name(event: Event | None, default: str = "Event") -> str:
    if event is None or not event.title:
        return default
    return event.title


def _existing_requests(requests: Iterable[PayoutRequest]) -> list[ExistingRequest]:
    return [to_existing_request(request) for request in requests]


class PayoutService:
    """Coordinate balance checks, payout request rows and Stripe transfers."""

    def __init__(
        self,
        repository: PayoutRepository,
        notifications: NotificationRepository,
        processor: PaymentProcessor,
        *,
        rate_limiter: FixedWindowRateLimiter | None = None,
        currency: str = "usd",
    ) -> None:
        self._repository = repository
        self._notifications = notifications
        self._processor = processor
        self._rate_limiter = rate_limiter
        self._currency = currency

    # -- Earnings -----------------------------------------------------------------

    async def fighter_earnings(self, actor: Profile) -> FighterEarningsResponse:
        if actor.role_normalized != FIGHTER:
            raise NotPermittedError("Only fighters can view earnings")

        payments = await self._repository.list_payments()
        tips = await self._repository.list_tips(actor.id)
        fee_charges = await self._repository.list_offer_fees(actor.id)
        requests = await self._repository.list_requests(
            recipient_type=FIGHTER, recipient_profile_id=actor.id
        )

        summary = compute_fighter_balance(
            actor.id,
            payments,
            tips,
            _existing_requests(requests),
            [charge for _, charge in fee_charges],
        )

        by_event: dict[str, dict[str, int]] = defaultdict(
            lambda: {"allocation": 0, "tip": 0}
        )
        for payment in payments:
            for allocation in payment.allocations:
                if allocation.fighter_id == actor.id and payment.event_id:
                    by_event[payment.event_id]["allocation"] += allocation.amount
        for tip in tips:
            if tip.event_id:
                by_event[tip.event_id]["tip"] += tip.amount

        events = {
            event.id: event
            for event in await self._repository.list_events(list(by_event))
        }
        breakdown = [
            FighterEventEarnings(
                event_id=event_id,
                event_name=_event_name(events.get(event_id), "Unknown Event"),
                event_date=events[event_id].event_date if event_id in events else None,
                allocation_earnings=amounts["allocation"],
                tip_earnings=amounts["tip"],
                total_earnings=amounts["allocation"] + amounts["tip"],
            )
            for event_id, amounts in by_event.items()
        ]

        return FighterEarningsResponse(
            total_earnings=summary.total,
            allocation_earnings=summary.allocation_earnings,
            tip_earnings=summary.tip_earnings,
            platform_fee=summary.platform_fee,
            total_paid_out=summary.paid_out,
            pending_requests=summary.pending,
            available_balance=summary.available,
            earnings_breakdown=breakdown,
            payout_requests=[
                PayoutRequestResponse.model_validate(request) for request in requests
            ],
        )

    async def organizer_earnings(self, actor: Profile) -> OrganizerEarningsResponse:
        """Per-event revenue split for every event the actor owns.

        Each event's organizer share is clamped at zero before summing, so one
        over-allocated event cannot eat into another event's share.
        """

        if actor.role_normalized not in ORGANIZER_ROLES:
            raise NotPermittedError("Only promotions and gyms can view organizer earnings")

        events = await self._repository.list_events_owned_by(actor.id)
        if not events:
            return OrganizerEarningsResponse()

        event_ids = [event.id for event in events]
        payments = await self._repository.list_payments(event_ids=event_ids)
        requests = await self._repository.list_requests(
            recipient_type=ORGANIZER,
            recipient_profile_id=actor.id,
            event_ids=event_ids,
        )

        payments_by_event: dict[str, list[PaymentRecord]] = defaultdict(list)
        for payment in payments:
            if payment.event_id:
                payments_by_event[payment.event_id].append(payment)

        breakdown: list[OrganizerEventEarnings] = []
        for event in events:
            event_summary = compute_organizer_balance(payments_by_event[event.id], [])
            breakdown.append(
                OrganizerEventEarnings(
                    event_id=event.id,
                    event_name=_event_name(event),
                    event_date=event.event_date,
                    total_revenue=event_summary.total,
                    platform_fee=event_summary.platform_fee,
                    fighter_share=event_summary.fighter_share,
                    organizer_share=event_summary.organizer_share,
                )
            )

        existing = _existing_requests(requests)
        organizer_share = sum(item.organizer_share for item in breakdown)
        return OrganizerEarningsResponse(
            total_revenue=sum(item.total_revenue for item in breakdown),
            total_platform_fees=sum(item.platform_fee for item in breakdown),
            total_fighter_share=sum(item.fighter_share for item in breakdown),
            organizer_share=organizer_share,
            total_paid_out=sum_requests(existing, PROCESSED_ONLY),
            pending_requests=sum_requests(existing, IN_FLIGHT_STATUSES),
            available_balance=organizer_share - reserved_amount(existing),
            earnings_breakdown=breakdown,
            payout_requests=[
                PayoutRequestResponse.model_validate(request) for request in requests
            ],
        )

    # -- Requests -----------------------------------------------------------------

    async def request_fighter_payout(
        self, actor: Profile, event_id: str, amount: Any
    ) -> PayoutRequestCreatedResponse:
        await self._enforce_rate_limit(actor)
        if actor.role_normalized != FIGHTER:
            raise NotPermittedError("Only fighters can request payouts")

        event = await self._repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        payments = await self._repository.list_payments(event_ids=[event_id])
        tips = await self._repository.list_tips(actor.id, event_id=event_id)
        fee_charges = await self._repository.list_offer_fees(actor.id, event_id=event_id)
        requests = await self._repository.list_requests(
            recipient_type=FIGHTER,
            recipient_profile_id=actor.id,
            event_ids=[event_id],
        )
        summary = compute_fighter_balance(
            actor.id,
            payments,
            tips,
            _existing_requests(requests),
            [charge for _, charge in fee_charges],
        )
        return await self._create_request(FIGHTER, actor, event_id, amount, summary)

    async def request_organizer_payout(
        self, actor: Profile, event_id: str, amount: Any
    ) -> PayoutRequestCreatedResponse:
        await self._enforce_rate_limit(actor)

        event = await self._repository.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if event.owner_profile_id != actor.id:
            raise NotPermittedError("You are not the organizer of this event")

        payments = await self._repository.list_payments(event_ids=[event_id])
        requests = await self._repository.list_requests(
            recipient_type=ORGANIZER,
            recipient_profile_id=actor.id,
            event_ids=[event_id],
        )
        summary = compute_organizer_balance(payments, _existing_requests(requests))
        return await self._create_request(ORGANIZER, actor, event_id, amount, summary)

    async def _enforce_rate_limit(self, actor: Profile) -> None:
        if self._rate_limiter is not None:
            await self._rate_limiter.enforce(actor.id)

    async def _create_request(
        self,
        recipient_type: str,
        actor: Profile,
        event_id: str,
        amount: Any,
        summary: BalanceSummary,
    ) -> PayoutRequestCreatedResponse:
        # Point-in-time check: a concurrent request can pass against the same snapshot.
        requested = validate_payout_amount(amount, summary.available)
        request = await self._repository.create_request(
            recipient_type=recipient_type,
            recipient_profile_id=actor.id,
            event_id=event_id,
            amount_requested=requested,
        )
        logger.info(
            "Created %s payout request %s for %s on event %s: %s cents",
            recipient_type,
            request.id,
            actor.id,
            event_id,
            requested,
        )
        return PayoutRequestCreatedResponse(
            payout_request=PayoutRequestResponse.model_validate(request),
            available_balance=summary.available - requested,
        )

    async def pending_requests(
        self,
        actor: Profile,
        *,
        event_id: str | None = None,
        recipient_type: str = FIGHTER,
    ) -> PendingRequestsResponse:
        """List actionable requests the actor is allowed to process.

        Organizers see fighter requests for events they own (optionally one
        event); admins asking for ``organizer`` requests see all of them.
        """

        if recipient_type == ORGANIZER:
            if not actor.is_admin:
                raise PayoutAuthorizationError(
                    "Only platform admins can view organizer payout requests"
                )
            rows = await self._repository.list_actionable_requests(
                recipient_type=ORGANIZER
            )
        else:
            owned = await self._repository.list_events_owned_by(actor.id)
            event_ids = [event.id for event in owned]
            if event_id is not None:
                event_ids = [owned_id for owned_id in event_ids if owned_id == event_id]
            if not event_ids:
                return PendingRequestsResponse()
            rows = await self._repository.list_actionable_requests(
                recipient_type=FIGHTER, event_ids=event_ids
            )

        pending = [
            PendingPayoutRequest(
                **PayoutRequestResponse.model_validate(row).model_dump(),
                event_name=_event_name(row.event),
                recipient_name=row.recipient.display_name if row.recipient else None,
                recipient_stripe_account_id=(
                    row.recipient.stripe_account_id if row.recipient else None
                ),
            )
            for row in rows
        ]
        return PendingRequestsResponse(pending_requests=pending)

    # -- Processing ---------------------------------------------------------------

    async def process_request(
        self, request_id: str, action: str, *, actor: Profile
    ) -> PayoutProcessResponse:
        """Approve (transfer funds) or reject a pending payout request.

        A processor failure during the transfer is recorded as ``failed`` and
        committed before :class:`ProcessorTransferFailedError` propagates, so
        the request never stays stuck in ``pending``.  Nothing is retried.
        """

        if action not in ("approve", "reject"):
            raise InvalidPayoutActionError("action must be approve or reject")

        request = await self._repository.get_request(request_id)
        if request is None:
            raise PayoutRequestNotFoundError(request_id)
        event = request.event
        if event is None:
            raise EventNotFoundError(request.event_id)

        self._authorize(request, event, actor)
        assert_actionable(request.status)

        if action == "reject":
            assert_transition(request.status, REJECTED)
            await self._repository.update_status(
                request, status=REJECTED, processed_by=actor.id
            )
            logger.info("Payout request %s rejected by %s", request.id, actor.id)
            await self._notify(request, event, actor, "payout_rejected")
            return PayoutProcessResponse(
                status=REJECTED,
                payout_request=PayoutRequestResponse.model_validate(request),
            )

        recipient = request.recipient
        destination = await self._ensure_onboarded(recipient, request.recipient_type)
        recipient_name = recipient.display_name

        metadata = {
            "payout_request_id": request.id,
            "event_id": event.id,
            "event_name": _event_name(event),
            "recipient_profile_id": recipient.id,
            "recipient_type": request.recipient_type,
        }
        http_request_id = get_request_id()
        if http_request_id:
            metadata["request_id"] = http_request_id

        try:
            transfer = await self._processor.create_transfer(
                amount=request.amount_requested,
                currency=self._currency,
                destination=destination,
                metadata=metadata,
                idempotency_key=f"payout-request-{request.id}",
            )
        except PaymentProcessorError as exc:
            reason = exc.message or "Stripe transfer failed"
            logger.error(
                "Stripe transfer for payout request %s failed (request_id=%s): %s",
                request.id,
                http_request_id or "-",
                reason,
            )
            assert_transition(request.status, FAILED)
            assert_outcome_invariants(FAILED, failure_reason=reason)
            await self._repository.update_status(
                request, status=FAILED, processed_by=actor.id, failure_reason=reason
            )
            await self._notify(
                request, event, actor, "payout_failed", {"failure_reason": reason}
            )
            await self._repository.commit()
            raise ProcessorTransferFailedError(
                f"Stripe transfer failed: {reason}", request_id=request.id, reason=reason
            ) from exc

        assert_transition(request.status, PROCESSED)
        assert_outcome_invariants(PROCESSED, transfer_id=transfer.id)
        await self._repository.update_status(
            request,
            status=PROCESSED,
            processed_by=actor.id,
            stripe_transfer_id=transfer.id,
        )
        logger.info(
            "Payout request %s processed by %s with transfer %s",
            request.id,
            actor.id,
            transfer.id,
        )
        await self._notify(
            request,
            event,
            actor,
            "payout_processed",
            {"transfer_id": transfer.id, "recipient_name": recipient_name},
        )
        return PayoutProcessResponse(
            status=PROCESSED,
            transfer_id=transfer.id,
            payout_request=PayoutRequestResponse.model_validate(request),
        )

    def _authorize(self, request: PayoutRequest, event: Event, actor: Profile) -> None:
        if request.recipient_type == ORGANIZER:
            if not actor.is_admin:
                raise PayoutAuthorizationError(
                    "Only platform admins can process organizer payout requests"
                )
        elif actor.id != event.owner_profile_id and not actor.is_admin:
            raise PayoutAuthorizationError(
                "Only event organizers (or platform admins) can process fighter payout requests"
            )

    async def _ensure_onboarded(self, recipient: Profile | None, recipient_type: str) -> str:
        """Return the payee's connected account id once it can receive transfers."""

        label = "Organizer" if recipient_type == ORGANIZER else "Fighter"
        if recipient is None or not recipient.stripe_account_id:
            raise PayeeNotOnboardedError(
                f"{label} has not connected their Stripe account. They need to "
                "complete Stripe Connect onboarding first."
            )
        not_ready = (
            f"{label}'s Stripe account is not fully set up. They need to complete onboarding."
        )
        if (
            recipient.stripe_account_status != ACTIVE_ACCOUNT_STATUS
            or not recipient.stripe_onboarding_completed
        ):
            raise PayeeNotOnboardedError(not_ready)

        account = await self._processor.retrieve_account(recipient.stripe_account_id)
        if not account.ready:
            logger.warning(
                "Connected account %s for %s cannot receive payouts yet",
                recipient.stripe_account_id,
                recipient.id,
            )
            raise PayeeNotOnboardedError(not_ready)
        return recipient.stripe_account_id

    async def _notify(
        self,
        request: PayoutRequest,
        event: Event,
        actor: Profile,
        notification_type: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "payout_request_id": request.id,
            "amount": request.amount_requested,
            "event_id": event.id,
            "event_name": _event_name(event),
            "recipient_type": request.recipient_type,
        }
        if extra:
            data.update(extra)
        await self._notifications.notify(
            profile_id=request.recipient_profile_id,
            type=notification_type,
            actor_profile_id=actor.id,
            data=data,
        )


__all__ = ["PayoutService"]
