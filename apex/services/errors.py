"""Domain exceptions raised by the record and payout services.

Each exception carries the HTTP status and :class:`ErrorType` it maps to so a
single FastAPI handler in :mod:`apex.main` can render every failure with the
shared error envelope.  Services never build HTTP responses themselves.
"""

from __future__ import annotations

from apex.schemas.error import ErrorType


class ApexError(Exception):
    """Base class for expected, client-visible failures."""

    status_code: int = 400
    error_type: ErrorType = ErrorType.VALIDATION_ERROR
    retry_after: int | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# -- Payout validation ----------------------------------------------------------


class InvalidAmountError(ApexError):
    """The requested payout amount is not a positive number of cents."""


class InsufficientBalanceError(ApexError):
    """The requested payout exceeds the payee's available balance."""

    def __init__(self, message: str, *, available: int, requested: int) -> None:
        super().__init__(message)
        self.available = available
        self.requested = requested


class InvalidPayoutActionError(ApexError):
    """The process action is neither ``approve`` nor ``reject``."""


class PayeeNotOnboardedError(ApexError):
    """The payee has no fully onboarded Stripe Connect account."""


class AlreadyProcessedError(ApexError):
    """The payout request is no longer in an actionable status."""

    status_code = 409
    error_type = ErrorType.CONFLICT

    def __init__(self, status: str) -> None:
        super().__init__(f"Payout request is already {status}")
        self.status = status


class ProcessorTransferFailedError(ApexError):
    """Stripe rejected the transfer; the request has been marked ``failed``."""

    status_code = 502
    error_type = ErrorType.PAYMENT_ERROR

    def __init__(self, message: str, *, request_id: str, reason: str) -> None:
        super().__init__(message)
        self.request_id = request_id
        self.reason = reason


class PaymentProcessorError(ApexError):
    """Raised by the Stripe client for transport errors and non-2xx replies."""

    status_code = 502
    error_type = ErrorType.PAYMENT_ERROR

    def __init__(
        self,
        message: str,
        *,
        error_type: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.stripe_error_type = error_type
        self.http_status = http_status


class InvalidFightHistoryError(ApexError):
    """A manual fight-history entry failed validation."""


class InvalidBoutResultError(ApexError):
    """The submitted winner side is not a recognised bout result."""


class InvalidRecordError(ApexError):
    """A typed total record is not in ``W-L-D`` form."""

    def __init__(self, record: str) -> None:
        super().__init__(f"Record must look like W-L-D, got '{record}'")
        self.record = record


# -- Identity and access ----------------------------------------------------------


class AuthenticationRequiredError(ApexError):
    status_code = 401
    error_type = ErrorType.AUTHENTICATION_ERROR


class NotPermittedError(ApexError):
    status_code = 403
    error_type = ErrorType.AUTHORIZATION_ERROR


class PayoutAuthorizationError(NotPermittedError):
    """The actor may not process this kind of payout request."""


class RateLimitExceededError(ApexError):
    status_code = 429
    error_type = ErrorType.RATE_LIMITED

    def __init__(self, message: str, *, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


# -- Lookups ----------------------------------------------------------------------


class NotFoundError(ApexError):
    status_code = 404
    error_type = ErrorType.NOT_FOUND


class FighterNotFoundError(NotFoundError):
    def __init__(self, fighter_id: str) -> None:
        super().__init__("Fighter not found")
        self.fighter_id = fighter_id


class EventNotFoundError(NotFoundError):
    def __init__(self, event_id: str) -> None:
        super().__init__("Event not found")
        self.event_id = event_id


class BoutNotFoundError(NotFoundError):
    def __init__(self, bout_id: str) -> None:
        super().__init__("Bout not found")
        self.bout_id = bout_id


class FightHistoryEntryNotFoundError(NotFoundError):
    def __init__(self, entry_id: str) -> None:
        super().__init__("Fight history entry not found")
        self.entry_id = entry_id


class PayoutRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str) -> None:
        super().__init__("Payout request not found")
        self.request_id = request_id


__all__ = [
    "AlreadyProcessedError",
    "ApexError",
    "AuthenticationRequiredError",
    "BoutNotFoundError",
    "EventNotFoundError",
    "FightHistoryEntryNotFoundError",
    "FighterNotFoundError",
    "InsufficientBalanceError",
    "InvalidBoutResultError",
    "InvalidFightHistoryError",
    "InvalidAmountError",
    "InvalidPayoutActionError",
    "InvalidRecordError",
    "NotFoundError",
    "NotPermittedError",
    "PayeeNotOnboardedError",
    "PaymentProcessorError",
    "PayoutAuthorizationError",
    "PayoutRequestNotFoundError",
    "ProcessorTransferFailedError",
    "RateLimitExceededError",
]
