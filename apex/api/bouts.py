from __future__ import annotations

from fastapi import APIRouter, Depends

from apex.db.models import Profile
from apex.schemas.record import BoutResultRequest, BoutResultResponse
from apex.services.dependencies import get_current_profile, get_record_service
from apex.services.record_service import FighterRecordService

router = APIRouter()


@router.post("/{bout_id}/result", response_model=BoutResultResponse)
async def record_bout_result(
    bout_id: str,
    payload: BoutResultRequest,
    actor: Profile = Depends(get_current_profile),
    service: FighterRecordService = Depends(get_record_service),
) -> BoutResultResponse:
    """Set the bout's winner side and refresh both fighters' records."""

    return await service.record_bout_result(
        bout_id, payload.winner_side, actor=actor, method=payload.method
    )
