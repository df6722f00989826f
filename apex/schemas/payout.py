from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

RecipientType = Literal["fighter", "organizer"]
PayoutAction = Literal["approve", "reject"]


class PayoutRequestCreate(BaseModel):
    event_id: str = Field(min_length=1)
    amount: StrictInt | StrictFloat | None = Field(
        default=None, description="Requested amount in cents"
    )


class PayoutRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    recipient_type: RecipientType
    recipient_profile_id: str
    event_id: str
    amount_requested: int
    status: str
    stripe_transfer_id: str | None = None
    failure_reason: str | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PayoutRequestCreatedResponse(BaseModel):
    payout_request: PayoutRequestResponse
    available_balance: int = Field(
        description="Balance left after this request was reserved, in cents"
    )


class FighterEventEarnings(BaseModel):
    event_id: str
    event_name: str
    event_date: date | None = None
    allocation_earnings: int = 0
    tip_earnings: int = 0
    total_earnings: int = 0


class FighterEarningsResponse(BaseModel):
    total_earnings: int = 0
    allocation_earnings: int = 0
    tip_earnings: int = 0
    platform_fee: int = 0
    total_paid_out: int = 0
    pending_requests: int = 0
    available_balance: int = 0
    earnings_breakdown: list[FighterEventEarnings] = Field(default_factory=list)
    payout_requests: list[PayoutRequestResponse] = Field(default_factory=list)


class OrganizerEventEarnings(BaseModel):
    event_id: str
    event_name: str
    event_date: date | None = None
    total_revenue: int = 0
    platform_fee: int = 0
    fighter_share: int = 0
    organizer_share: int = 0


class OrganizerEarningsResponse(BaseModel):
    total_revenue: int = 0
    total_platform_fees: int = 0
    total_fighter_share: int = 0
    organizer_share: int = 0
    total_paid_out: int = 0
    pending_requests: int = 0
    available_balance: int = 0
    earnings_breakdown: list[OrganizerEventEarnings] = Field(default_factory=list)
    payout_requests: list[PayoutRequestResponse] = Field(default_factory=list)


class PendingPayoutRequest(PayoutRequestResponse):
    event_name: str | None = None
    recipient_name: str | None = None
    recipient_stripe_account_id: str | None = None


class PendingRequestsResponse(BaseModel):
    pending_requests: list[PendingPayoutRequest] = Field(default_factory=list)


class PayoutProcessRequest(BaseModel):
    payout_request_id: str = Field(min_length=1)
    action: PayoutAction


class PayoutProcessResponse(BaseModel):
    status: str
    transfer_id: str | None = None
    payout_request: PayoutRequestResponse
