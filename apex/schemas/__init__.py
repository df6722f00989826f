"""Pydantic schemas for API requests and responses."""

from apex.schemas.error import (  # noqa: F401
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from apex.schemas.fight_history import (  # noqa: F401
    FightHistoryCreate,
    FightHistoryEntryResponse,
    FightHistoryListResponse,
    FightHistoryMutationResponse,
    FightHistoryUpdate,
)
from apex.schemas.payout import (  # noqa: F401
    FighterEarningsResponse,
    OrganizerEarningsResponse,
    PayoutProcessRequest,
    PayoutProcessResponse,
    PayoutRequestCreate,
    PayoutRequestCreatedResponse,
    PayoutRequestResponse,
    PendingRequestsResponse,
)
from apex.schemas.record import (  # noqa: F401
    BoutResultRequest,
    BoutResultResponse,
    RecordRecalculationRequest,
    RecordUpdateResponse,
)
