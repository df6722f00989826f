"""Fighter record and manual fight-history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from apex.db.models import Profile
from apex.schemas.fight_history import (
    FightHistoryCreate,
    FightHistoryListResponse,
    FightHistoryMutationResponse,
    FightHistoryUpdate,
)
from apex.schemas.record import RecordRecalculationRequest, RecordUpdateResponse
from apex.services.dependencies import (
    get_current_profile,
    get_fight_history_service,
    get_record_service,
)
from apex.services.errors import NotPermittedError
from apex.services.record_service import FightHistoryService, FighterRecordService

router = APIRouter()


@router.patch(
    "/fight-history/{entry_id}", response_model=FightHistoryMutationResponse
)
async def update_fight_history_entry(
    entry_id: str,
    payload: FightHistoryUpdate,
    actor: Profile = Depends(get_current_profile),
    service: FightHistoryService = Depends(get_fight_history_service),
) -> FightHistoryMutationResponse:
    return await service.update_entry(entry_id, payload, actor=actor)


@router.delete(
    "/fight-history/{entry_id}", response_model=FightHistoryMutationResponse
)
async def delete_fight_history_entry(
    entry_id: str,
    actor: Profile = Depends(get_current_profile),
    service: FightHistoryService = Depends(get_fight_history_service),
) -> FightHistoryMutationResponse:
    """Delete one of the caller's entries and return the refreshed record."""

    return await service.delete_entry(entry_id, actor=actor)


@router.post("/{fighter_id}/record", response_model=RecordUpdateResponse)
async def recalculate_record(
    fighter_id: str,
    payload: RecordRecalculationRequest | None = None,
    actor: Profile = Depends(get_current_profile),
    service: FighterRecordService = Depends(get_record_service),
) -> RecordUpdateResponse:
    """Recompute the fighter's record, optionally from a new total typed in by them."""

    if actor.id != fighter_id and not actor.is_admin:
        raise NotPermittedError("You can only update your own record")
    new_total = payload.new_total_record if payload is not None else None
    return await service.recalculate(fighter_id, new_total_record=new_total)


@router.get("/{fighter_id}/fight-history", response_model=FightHistoryListResponse)
async def list_fight_history(
    fighter_id: str,
    service: FightHistoryService = Depends(get_fight_history_service),
) -> FightHistoryListResponse:
    return FightHistoryListResponse(fights=await service.list_entries(fighter_id))


@router.post(
    "/{fighter_id}/fight-history",
    response_model=FightHistoryMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fight_history_entry(
    fighter_id: str,
    payload: FightHistoryCreate,
    actor: Profile = Depends(get_current_profile),
    service: FightHistoryService = Depends(get_fight_history_service),
) -> FightHistoryMutationResponse:
    return await service.create_entry(fighter_id, payload, actor=actor)
