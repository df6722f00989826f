"""Balance accounting for fighter and organizer payouts.

All amounts are integer cents.  The functions here are pure: the payout
service loads payments, tips, offer fees and existing payout requests, then
asks this module what the payee may still withdraw.

The availability check is point-in-time.  Nothing locks the balance between
:func:`validate_payout_amount` and the insert of the new request, so two
concurrent requests can both pass against the same snapshot.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real
from typing import Any

from apex.services.errors import InsufficientBalanceError, InvalidAmountError

RESERVING_STATUSES = frozenset({"pending", "approved", "processed"})
IN_FLIGHT_STATUSES = frozenset({"pending", "approved"})
ACCEPTED_OFFER_STATUS = "accepted"


def _cents(value: Any) -> int:
    """Coerce a stored amount to whole cents; missing or junk values are zero."""

    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Allocation:
    """Portion of a stream payment earmarked for one fighter."""

    fighter_id: str | None
    amount: int = 0

    @classmethod
    def from_mapping(cls, payload: Any) -> Allocation | None:
        if not isinstance(payload, Mapping):
            return None
        fighter_id = payload.get("fighter_id")
        return cls(
            fighter_id=str(fighter_id) if fighter_id is not None else None,
            amount=_cents(payload.get("amount")),
        )


def parse_allocations(raw: Any) -> tuple[Allocation, ...]:
    """Parse the JSON ``fighter_allocations`` column, skipping malformed items."""

    if not isinstance(raw, (list, tuple)):
        return ()
    parsed = (Allocation.from_mapping(item) for item in raw)
    return tuple(allocation for allocation in parsed if allocation is not None)


@dataclass(frozen=True)
class PaymentRecord:
    event_id: str | None
    amount_paid: int = 0
    platform_fee: int = 0
    allocations: tuple[Allocation, ...] = ()


@dataclass(frozen=True)
class Tip:
    fighter_id: str | None
    amount: int = 0
    event_id: str | None = None


@dataclass(frozen=True)
class ExistingRequest:
    amount_requested: int
    status: str


@dataclass(frozen=True)
class FeeCharge:
    """Platform fee attached to a bout offer for the payee."""

    amount: int
    offer_status: str | None


@dataclass(frozen=True)
class BalanceSummary:
    """Derived balance for one payee.

    ``total`` is the gross revenue attributable to the payee.  ``available``
    may be negative when concurrent requests overdrew the balance.
    """

    total: int
    available: int
    platform_fee: int = 0
    fighter_share: int = 0
    reserved: int = 0
    paid_out: int = 0
    pending: int = 0
    allocation_earnings: int = 0
    tip_earnings: int = 0
    organizer_share: int = 0


# -- Platform fees ----------------------------------------------------------------


def calculate_platform_fee(amount_cents: int, percentage: int | float = 5) -> int:
    """Return the platform fee for ``amount_cents`` rounded half-up to whole cents."""

    fee = Decimal(_cents(amount_cents)) * Decimal(str(percentage)) / Decimal(100)
    return int(fee.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def amount_after_platform_fee(amount_cents: int, percentage: int | float = 5) -> int:
    return _cents(amount_cents) - calculate_platform_fee(amount_cents, percentage)


def format_cents(cents: int) -> str:
    """Format cents as a decimal currency string, e.g. ``4000 -> "40.00"``."""

    amount = (Decimal(int(cents)) / Decimal(100)).quantize(Decimal("0.01"))
    return f"{amount:.2f}"


def format_dollars(cents: int) -> str:
    """Dollar amount for messages, sign first: ``-600 -> "-$6.00"``."""

    sign = "-" if cents < 0 else ""
    return f"{sign}${format_cents(abs(int(cents)))}"


# -- Reservations -----------------------------------------------------------------


def sum_requests(
    requests: Iterable[ExistingRequest], statuses: frozenset[str]
) -> int:
    return sum(
        _cents(request.amount_requested)
        for request in requests
        if request.status in statuses
    )


def reserved_amount(requests: Iterable[ExistingRequest]) -> int:
    """Sum of requests in ``pending``, ``approved`` or ``processed`` status."""

    return sum_requests(requests, RESERVING_STATUSES)


def accepted_offer_fees(fee_charges: Iterable[FeeCharge]) -> int:
    """Fees count only once their offer has been accepted."""

    return sum(
        _cents(charge.amount)
        for charge in fee_charges
        if (charge.offer_status or "").lower() == ACCEPTED_OFFER_STATUS
    )


# -- Balances ---------------------------------------------------------------------


def compute_fighter_balance(
    fighter_id: str,
    payments: Iterable[PaymentRecord],
    tips: Iterable[Tip],
    existing_requests: Iterable[ExistingRequest],
    fee_charges: Iterable[FeeCharge] = (),
) -> BalanceSummary:
    """Return the fighter's gross earnings and what is still available."""

    allocation_earnings = sum(
        allocation.amount
        for payment in payments
        for allocation in payment.allocations
        if allocation.fighter_id == fighter_id
    )
    tip_earnings = sum(_cents(tip.amount) for tip in tips if tip.fighter_id == fighter_id)

    requests = list(existing_requests)
    total = allocation_earnings + tip_earnings
    platform_fee = accepted_offer_fees(fee_charges)
    reserved = reserved_amount(requests)

    return BalanceSummary(
        total=total,
        available=total - platform_fee - reserved,
        platform_fee=platform_fee,
        reserved=reserved,
        paid_out=sum_requests(requests, frozenset({"processed"})),
        pending=sum_requests(requests, IN_FLIGHT_STATUSES),
        allocation_earnings=allocation_earnings,
        tip_earnings=tip_earnings,
    )


def compute_organizer_balance(
    payments: Iterable[PaymentRecord],
    existing_requests: Iterable[ExistingRequest],
) -> BalanceSummary:
    """Return the organizer's share of event revenue and what is still available."""

    event_revenue = 0
    platform_fee = 0
    fighter_share = 0
    for payment in payments:
        event_revenue += _cents(payment.amount_paid)
        platform_fee += _cents(payment.platform_fee)
        fighter_share += sum(allocation.amount for allocation in payment.allocations)

    organizer_share = max(0, event_revenue - platform_fee - fighter_share)
    requests = list(existing_requests)
    reserved = reserved_amount(requests)

    return BalanceSummary(
        total=event_revenue,
        available=organizer_share - reserved,
        platform_fee=platform_fee,
        fighter_share=fighter_share,
        reserved=reserved,
        paid_out=sum_requests(requests, frozenset({"processed"})),
        pending=sum_requests(requests, IN_FLIGHT_STATUSES),
        organizer_share=organizer_share,
    )


def validate_payout_amount(requested_amount_cents: Any, available: int) -> int:
    """Return the requested amount as cents or raise a payout validation error."""

    if isinstance(requested_amount_cents, bool) or not isinstance(
        requested_amount_cents, Real
    ):
        raise InvalidAmountError("amount (in cents) must be a positive number")
    if (
        not math.isfinite(requested_amount_cents)
        or requested_amount_cents <= 0
        or requested_amount_cents != int(requested_amount_cents)
    ):
        raise InvalidAmountError("amount (in cents) must be a positive number")

    requested = int(requested_amount_cents)
    if requested > available:
        raise InsufficientBalanceError(
            f"Insufficient balance. Available: {format_dollars(available)}, "
            f"Requested: {format_dollars(requested)}",
            available=available,
            requested=requested,
        )
    return requested


__all__ = [
    "ACCEPTED_OFFER_STATUS",
    "Allocation",
    "BalanceSummary",
    "ExistingRequest",
    "FeeCharge",
    "IN_FLIGHT_STATUSES",
    "PaymentRecord",
    "RESERVING_STATUSES",
    "Tip",
    "accepted_offer_fees",
    "amount_after_platform_fee",
    "calculate_platform_fee",
    "compute_fighter_balance",
    "compute_organizer_balance",
    "format_cents",
    "format_dollars",
    "parse_allocations",
    "reserved_amount",
    "sum_requests",
    "validate_payout_amount",
]
