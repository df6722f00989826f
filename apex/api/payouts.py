"""Payout earnings, request and processing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from apex.db.models import Profile
from apex.schemas.payout import (
    FighterEarningsResponse,
    OrganizerEarningsResponse,
    PayoutProcessRequest,
    PayoutProcessResponse,
    PayoutRequestCreate,
    PayoutRequestCreatedResponse,
    PendingRequestsResponse,
    RecipientType,
)
from apex.services.dependencies import get_current_profile, get_payout_service
from apex.services.payout_service import PayoutService

router = APIRouter()


@router.get("/earnings", response_model=FighterEarningsResponse)
async def fighter_earnings(
    actor: Profile = Depends(get_current_profile),
    service: PayoutService = Depends(get_payout_service),
) -> FighterEarningsResponse:
    return await service.fighter_earnings(actor)


@router.post(
    "/request",
    response_model=PayoutRequestCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_fighter_payout(
    payload: PayoutRequestCreate,
    actor: Profile = Depends(get_current_profile),
    service: PayoutService = Depends(get_payout_service),
) -> PayoutRequestCreatedResponse:
    """Reserve part of the fighter's balance for one event as a pending payout."""

    return await service.request_fighter_payout(actor, payload.event_id, payload.amount)


@router.get("/organizer/earnings", response_model=OrganizerEarningsResponse)
async def organizer_earnings(
    actor: Profile = Depends(get_current_profile),
    service: PayoutService = Depends(get_payout_service),
) -> OrganizerEarningsResponse:
    return await service.organizer_earnings(actor)


@router.post(
    "/organizer/request",
    response_model=PayoutRequestCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_organizer_payout(
    payload: PayoutRequestCreate,
    actor: Profile = Depends(get_current_profile),
    service: PayoutService = Depends(get_payout_service),
) -> PayoutRequestCreatedResponse:
    return await service.request_organizer_payout(actor, payload.event_id, payload.amount)


@router.get("/pending", response_model=PendingRequestsResponse)
async def pending_requests(
    event_id: str | None = Query(default=None, alias="eventId"),
    recipient_type: RecipientType = Query(default="fighter", alias="type"),
    actor: Profile = Depends(get_current_profile),
    service: PayoutService = Depends(get_payout_service),
) -> PendingRequestsResponse:
    """Pending fighter requests for the caller's events, or organizer requests for admins."""

    return await service.pending_requests(
        actor, event_id=event_id, recipient_type=recipient_type
    )


@router.post("/process", response_model=PayoutProcessResponse)
async def process_payout(
    payload: PayoutProcessRequest,
    actor: Profile = Depends(get_current_profile),
    service: PayoutService = Depends(get_payout_service),
) -> PayoutProcessResponse:
    return await service.process_request(
        payload.payout_request_id, payload.action, actor=actor
    )
