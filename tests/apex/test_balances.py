"""Tests for the payout balance calculator."""

from __future__ import annotations

import math

import pytest

from apex.services.balances import (
    Allocation,
    ExistingRequest,
    FeeCharge,
    PaymentRecord,
    Tip,
    amount_after_platform_fee,
    calculate_platform_fee,
    compute_fighter_balance,
    compute_organizer_balance,
    format_cents,
    format_dollars,
    parse_allocations,
    reserved_amount,
    validate_payout_amount,
)
from apex.services.errors import InsufficientBalanceError, InvalidAmountError

FIGHTER = "fighter-1"


def _payment(amount_paid: int = 0, platform_fee: int = 0, **allocations: int) -> PaymentRecord:
    return PaymentRecord(
        event_id="event-1",
        amount_paid=amount_paid,
        platform_fee=platform_fee,
        allocations=tuple(
            Allocation(fighter_id=fighter_id.replace("_", "-"), amount=amount)
            for fighter_id, amount in allocations.items()
        ),
    )


def test_fighter_balance_subtracts_reserving_requests() -> None:
    """5000 allocated plus a 1000 tip minus a processed 2000 leaves 4000."""

    summary = compute_fighter_balance(
        FIGHTER,
        [_payment(fighter_1=5000, fighter_2=7000)],
        [Tip(fighter_id=FIGHTER, amount=1000), Tip(fighter_id="fighter-2", amount=300)],
        [ExistingRequest(amount_requested=2000, status="processed")],
    )

    assert summary.total == 6000
    assert summary.allocation_earnings == 5000
    assert summary.tip_earnings == 1000
    assert summary.paid_out == 2000
    assert summary.available == 4000

    with pytest.raises(InsufficientBalanceError) as excinfo:
        validate_payout_amount(4500, summary.available)

    assert "$40.00" in excinfo.value.message
    assert "$45.00" in excinfo.value.message
    assert validate_payout_amount(4000, summary.available) == 4000


def test_rejected_and_failed_requests_release_their_reservation() -> None:
    requests = [
        ExistingRequest(amount_requested=100, status="pending"),
        ExistingRequest(amount_requested=200, status="approved"),
        ExistingRequest(amount_requested=400, status="processed"),
        ExistingRequest(amount_requested=800, status="rejected"),
        ExistingRequest(amount_requested=1600, status="failed"),
    ]

    assert reserved_amount(requests) == 700

    summary = compute_fighter_balance(FIGHTER, [_payment(fighter_1=1000)], [], requests)
    assert summary.pending == 300
    assert summary.available == 300


def test_offer_fees_count_only_once_accepted() -> None:
    fees = [
        FeeCharge(amount=250, offer_status="accepted"),
        FeeCharge(amount=500, offer_status="pending"),
        FeeCharge(amount=750, offer_status="declined"),
        FeeCharge(amount=125, offer_status="ACCEPTED"),
    ]

    summary = compute_fighter_balance(FIGHTER, [_payment(fighter_1=2000)], [], [], fees)

    assert summary.platform_fee == 375
    assert summary.total == 2000
    assert summary.available == 1625


def test_concurrent_requests_can_overdraw_the_same_snapshot() -> None:
    """Both checks pass against one snapshot; the insert is not guarded."""

    snapshot = compute_fighter_balance(FIGHTER, [_payment(fighter_1=1000)], [], [])
    assert validate_payout_amount(800, snapshot.available) == 800
    assert validate_payout_amount(800, snapshot.available) == 800

    summary = compute_fighter_balance(
        FIGHTER,
        [_payment(fighter_1=1000)],
        [],
        [
            ExistingRequest(amount_requested=800, status="pending"),
            ExistingRequest(amount_requested=800, status="pending"),
        ],
    )

    assert summary.available == -600

    with pytest.raises(InsufficientBalanceError) as excinfo:
        validate_payout_amount(100, summary.available)

    assert excinfo.value.message == (
        "Insufficient balance. Available: -$6.00, Requested: $1.00"
    )


def test_organizer_share_is_revenue_minus_fees_and_allocations() -> None:
    summary = compute_organizer_balance(
        [
            _payment(10000, 500, fighter_1=2000, fighter_2=1500),
            _payment(4000, 200, fighter_1=300),
        ],
        [ExistingRequest(amount_requested=1000, status="pending")],
    )

    assert summary.total == 14000
    assert summary.platform_fee == 700
    assert summary.fighter_share == 3800
    assert summary.organizer_share == 9500
    assert summary.available == 8500


def test_organizer_share_is_clamped_at_zero() -> None:
    summary = compute_organizer_balance([_payment(1000, 100, fighter_1=5000)], [])

    assert summary.organizer_share == 0
    assert summary.available == 0


@pytest.mark.parametrize(
    "amount",
    [True, False, 0, -100, 1.5, "100", None, math.inf, math.nan],
)
def test_invalid_amounts_are_rejected(amount: object) -> None:
    with pytest.raises(InvalidAmountError, match="positive number"):
        validate_payout_amount(amount, 1_000_000)


def test_whole_float_amounts_are_accepted_as_cents() -> None:
    assert validate_payout_amount(2500.0, 2500) == 2500


def test_parse_allocations_skips_malformed_items() -> None:
    parsed = parse_allocations(
        [
            {"fighter_id": "fighter-1", "amount": 1200},
            {"fighter_id": "fighter-2"},
            "not-a-mapping",
            {"fighter_id": "fighter-3", "amount": "junk"},
        ]
    )

    assert parsed == (
        Allocation(fighter_id="fighter-1", amount=1200),
        Allocation(fighter_id="fighter-2", amount=0),
        Allocation(fighter_id="fighter-3", amount=0),
    )
    assert parse_allocations(None) == ()
    assert parse_allocations({"fighter_id": "fighter-1"}) == ()


@pytest.mark.parametrize(
    ("amount", "percentage", "fee"),
    [(1000, 5, 50), (1010, 5, 51), (1009, 5, 50), (999, 5, 50), (0, 5, 0), (1000, 12.5, 125)],
)
def test_platform_fee_rounds_half_up(amount: int, percentage: float, fee: int) -> None:
    assert calculate_platform_fee(amount, percentage) == fee
    assert amount_after_platform_fee(amount, percentage) == amount - fee


def test_format_cents() -> None:
    assert format_cents(4000) == "40.00"
    assert format_cents(5) == "0.05"
    assert format_cents(-150) == "-1.50"


def test_format_dollars_puts_the_sign_before_the_symbol() -> None:
    assert format_dollars(4500) == "$45.00"
    assert format_dollars(-600) == "-$6.00"
    assert format_dollars(0) == "$0.00"
