"""Status transitions for payout requests."""

from __future__ import annotations

from typing import Literal

from apex.services.errors import AlreadyProcessedError

PayoutStatus = Literal["pending", "approved", "rejected", "processed", "failed"]

PENDING: PayoutStatus = "pending"
APPROVED: PayoutStatus = "approved"
REJECTED: PayoutStatus = "rejected"
PROCESSED: PayoutStatus = "processed"
FAILED: PayoutStatus = "failed"

ALLOWED: dict[str, frozenset[str]] = {
    PENDING: frozenset({APPROVED, REJECTED, PROCESSED, FAILED}),
    APPROVED: frozenset({REJECTED, PROCESSED, FAILED}),
    REJECTED: frozenset(),
    PROCESSED: frozenset(),
    FAILED: frozenset(),
}

ACTIONABLE_STATUSES = frozenset({PENDING, APPROVED})
TERMINAL_STATUSES = frozenset({REJECTED, PROCESSED, FAILED})


class InvalidTransition(ValueError):
    pass


def is_actionable(status: str | None) -> bool:
    return status in ACTIONABLE_STATUSES


def assert_actionable(status: str | None) -> None:
    """Raise :class:`AlreadyProcessedError` unless the request can still be acted on."""

    if not is_actionable(status):
        raise AlreadyProcessedError(status or "unknown")


def assert_transition(old: str, new: str) -> None:
    if new not in ALLOWED.get(old, frozenset()):
        raise InvalidTransition(f"Illegal payout transition: {old} -> {new}")


def assert_outcome_invariants(
    new_status: str,
    *,
    transfer_id: str | None = None,
    failure_reason: str | None = None,
) -> None:
    """A processed request needs its transfer id; a failed one needs its reason."""

    if new_status == PROCESSED and not transfer_id:
        raise ValueError("Invariant violation: status=processed requires a transfer id")
    if new_status == FAILED and not failure_reason:
        raise ValueError("Invariant violation: status=failed requires a failure reason")


__all__ = [
    "ACTIONABLE_STATUSES",
    "ALLOWED",
    "APPROVED",
    "FAILED",
    "InvalidTransition",
    "PENDING",
    "PROCESSED",
    "PayoutStatus",
    "REJECTED",
    "TERMINAL_STATUSES",
    "assert_actionable",
    "assert_outcome_invariants",
    "assert_transition",
    "is_actionable",
]
