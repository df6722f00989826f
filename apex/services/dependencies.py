"""FastAPI dependency wiring for the ledger services.

Dependency factories live here so the service modules stay free of web-layer
concerns and can be exercised directly from tests.
"""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from apex.cache import get_redis
from apex.db.connection import get_db
from apex.db.models import Profile
from apex.db.repositories import (
    NotificationRepository,
    PayoutRepository,
    RecordRepository,
)
from apex.services.errors import AuthenticationRequiredError
from apex.services.payment_processor import PaymentProcessor, StripeClient
from apex.services.payout_service import PayoutService
from apex.services.rate_limiter import FixedWindowRateLimiter
from apex.services.record_service import FightHistoryService, FighterRecordService
from apex.settings import get_settings

_payout_rate_limiter: FixedWindowRateLimiter | None = None


async def get_current_profile(
    x_profile_id: str | None = Header(default=None, alias="X-Profile-Id"),
    session: AsyncSession = Depends(get_db),
) -> Profile:
    """Resolve the acting profile from the gateway-supplied ``X-Profile-Id`` header."""

    profile_id = (x_profile_id or "").strip()
    if not profile_id:
        raise AuthenticationRequiredError("Not authenticated")
    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise AuthenticationRequiredError("Unknown profile")
    return profile


def get_payment_processor() -> PaymentProcessor:
    return StripeClient.from_settings()


async def get_payout_rate_limiter() -> FixedWindowRateLimiter:
    """Return the process-wide limiter, binding Redis on first use when reachable."""

    global _payout_rate_limiter
    if _payout_rate_limiter is None:
        settings = get_settings()
        _payout_rate_limiter = FixedWindowRateLimiter(
            await get_redis(),
            max_requests=settings.payout_rate_limit_max_requests,
            window_seconds=settings.payout_rate_limit_window_seconds,
        )
    return _payout_rate_limiter


def reset_payout_rate_limiter() -> None:
    global _payout_rate_limiter
    _payout_rate_limiter = None


def get_record_service(session: AsyncSession = Depends(get_db)) -> FighterRecordService:
    return FighterRecordService(RecordRepository(session))


def get_fight_history_service(
    session: AsyncSession = Depends(get_db),
) -> FightHistoryService:
    repository = RecordRepository(session)
    return FightHistoryService(repository, FighterRecordService(repository))


def get_payout_service(
    session: AsyncSession = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
    rate_limiter: FixedWindowRateLimiter = Depends(get_payout_rate_limiter),
) -> PayoutService:
    """Wire repositories, the Stripe client and the rate limiter for payouts."""

    settings = get_settings()
    return PayoutService(
        PayoutRepository(
            session, platform_fee_percentage=settings.platform_fee_percentage
        ),
        NotificationRepository(session),
        processor,
        rate_limiter=rate_limiter,
        currency=settings.payout_currency,
    )


__all__ = [
    "get_current_profile",
    "get_fight_history_service",
    "get_payment_processor",
    "get_payout_rate_limiter",
    "get_payout_service",
    "get_record_service",
    "reset_payout_rate_limiter",
]
