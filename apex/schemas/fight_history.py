from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from apex.schemas.record import RecordUpdateResponse

FightResult = Literal["win", "loss", "draw", "no_contest"]


class FightHistoryCreate(BaseModel):
    event_name: str = Field(min_length=1)
    event_date: date
    opponent_name: str = Field(min_length=1)
    result: FightResult
    location: str | None = None
    result_method: str | None = None
    result_round: int | None = Field(default=None, ge=1)
    result_time: str | None = None
    weight_class: str | None = None
    notes: str | None = None


class FightHistoryUpdate(BaseModel):
    """Partial update; only fields present in the request body are written."""

    event_name: str | None = None
    event_date: date | None = None
    opponent_name: str | None = None
    result: FightResult | None = None
    location: str | None = None
    result_method: str | None = None
    result_round: int | None = Field(default=None, ge=1)
    result_time: str | None = None
    weight_class: str | None = None
    notes: str | None = None


class FightHistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    fighter_profile_id: str
    event_name: str
    event_date: date
    opponent_name: str
    result: str
    location: str | None = None
    result_method: str | None = None
    result_round: int | None = None
    result_time: str | None = None
    weight_class: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class FightHistoryListResponse(BaseModel):
    fights: list[FightHistoryEntryResponse] = Field(default_factory=list)


class FightHistoryMutationResponse(BaseModel):
    fight: FightHistoryEntryResponse | None = None
    record: RecordUpdateResponse
