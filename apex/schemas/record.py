from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

WinnerSide = Literal["red", "blue", "draw", "no_contest"]


class RecordRecalculationRequest(BaseModel):
    new_total_record: str | None = Field(
        default=None,
        description="Total record typed in by the fighter as 'W-L-D'; when set, "
        "the baseline is derived so recomputation reproduces it.",
        pattern=r"^\s*(\d+-\d+-\d+)?\s*$",
        examples=["12-3-1"],
    )


class RecordUpdateResponse(BaseModel):
    fighter_id: str
    total_record: str
    record_base: str | None = None
    last_5_form: str = ""
    current_win_streak: int = 0
    skipped: bool = False
    reason: str | None = None


class BoutResultRequest(BaseModel):
    winner_side: WinnerSide | None = Field(
        default=None, description="Leave empty to clear a recorded result"
    )
    method: str | None = None


class BoutResultResponse(BaseModel):
    bout_id: str
    winner_side: WinnerSide | None = None
    method: str | None = None
    records: list[RecordUpdateResponse] = Field(default_factory=list)
