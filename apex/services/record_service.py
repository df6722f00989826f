"""Keep fighter records in sync with bout results and manual fight history."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from apex.db.models import FightHistoryEntry, Profile
from apex.db.repositories import RecordRepository
from apex.schemas.fight_history import (
    FightHistoryCreate,
    FightHistoryEntryResponse,
    FightHistoryMutationResponse,
    FightHistoryUpdate,
)
from apex.schemas.record import BoutResultResponse, RecordUpdateResponse
from apex.services.errors import (
    BoutNotFoundError,
    FightHistoryEntryNotFoundError,
    FighterNotFoundError,
    InvalidBoutResultError,
    InvalidFightHistoryError,
    InvalidRecordError,
    NotPermittedError,
)
from apex.services.records import (
    ManualFight,
    RecordTriple,
    ResolvedBout,
    compute_record,
    format_record,
    is_record,
    parse_record,
    reverse_baseline,
)

logger = logging.getLogger(__name__)

WINNER_SIDES = frozenset({"red", "blue", "draw", "no_contest"})
FIGHT_RESULTS = frozenset({"win", "loss", "draw", "no_contest"})
REQUIRED_FIGHT_FIELDS = ("event_name", "event_date", "opponent_name", "result")

SKIP_REASON_LOST_WINS = "Would reduce wins unexpectedly"
SKIP_REASON_NO_BOUTS = "Would reduce record with no bouts"


def _regression_reason(
    computed: RecordTriple,
    current: RecordTriple,
    bouts: Sequence[ResolvedBout],
    fights: Sequence[ManualFight],
) -> str | None:
    """Return why writing ``computed`` over ``current`` looks like lost history."""

    if computed.wins < current.wins and len(bouts) + len(fights) < current.wins:
        return SKIP_REASON_LOST_WINS
    if computed.total_fights < current.total_fights and not bouts and not fights:
        return SKIP_REASON_NO_BOUTS
    return None


class FighterRecordService:
    """Recalculate and persist the derived record columns on a fighter profile."""

    def __init__(self, repository: RecordRepository) -> None:
        self._repository = repository

    async def recalculate(
        self,
        fighter_id: str,
        new_total_record: str | None = None,
        *,
        guard: bool = True,
    ) -> RecordUpdateResponse:
        """Recompute ``record``, ``last_5_form`` and ``current_win_streak``.

        With ``new_total_record`` the baseline is reverse-derived so that the
        stored total equals the supplied one.  Without it, the regression guard
        refuses writes that would silently erase wins or whole fights when the
        loaded history cannot account for them; the response then carries
        ``skipped=True`` and the stored record is left untouched.  Callers that
        removed history on purpose pass ``guard=False``.
        """

        profile = await self._repository.get_profile(fighter_id)
        if profile is None:
            raise FighterNotFoundError(fighter_id)

        override = bool(new_total_record and new_total_record.strip())
        if override and not is_record(new_total_record):
            raise InvalidRecordError(new_total_record)

        bouts = await self._repository.list_resolved_bouts(fighter_id)
        fights = await self._repository.list_manual_fights(fighter_id)

        if override:
            record_base = format_record(
                reverse_baseline(new_total_record, fighter_id, bouts, fights)
            )
            summary = compute_record(fighter_id, record_base, bouts, fights)
            total_record = format_record(parse_record(new_total_record))
            logger.info(
                "Fighter %s record set to %s (baseline %s)",
                fighter_id,
                total_record,
                record_base,
            )
        else:
            record_base = profile.record_base
            summary = compute_record(fighter_id, record_base, bouts, fights)
            total_record = summary.record

            reason = (
                _regression_reason(summary.total, parse_record(profile.record), bouts, fights)
                if guard
                else None
            )

            if reason is not None:
                logger.warning(
                    "Skipping record update for fighter %s: %s -> %s (%s; %d bouts, %d manual fights)",
                    fighter_id,
                    profile.record,
                    total_record,
                    reason,
                    len(bouts),
                    len(fights),
                )
                return RecordUpdateResponse(
                    fighter_id=fighter_id,
                    total_record=profile.record or total_record,
                    record_base=profile.record_base,
                    last_5_form=summary.last5,
                    current_win_streak=summary.streak,
                    skipped=True,
                    reason=reason,
                )

        await self._repository.save_record(
            profile,
            record=total_record,
            record_base=record_base,
            last_5_form=summary.last5 or None,
            current_win_streak=summary.streak,
        )
        return RecordUpdateResponse(
            fighter_id=fighter_id,
            total_record=total_record,
            record_base=record_base,
            last_5_form=summary.last5,
            current_win_streak=summary.streak,
        )

    async def record_bout_result(
        self,
        bout_id: str,
        winner_side: str | None,
        *,
        actor: Profile,
        method: str | None = None,
    ) -> BoutResultResponse:
        """Set (or clear) a bout's winner side and refresh both corners' records.

        An omitted ``method`` leaves the recorded one in place.
        """

        normalized = (winner_side or "").strip().lower() or None
        if normalized is not None and normalized not in WINNER_SIDES:
            raise InvalidBoutResultError(
                "winner_side must be red, blue, draw, or no_contest"
            )

        bout = await self._repository.get_bout(bout_id)
        if bout is None:
            raise BoutNotFoundError(bout_id)
        if not actor.is_admin and bout.event.owner_profile_id != actor.id:
            raise NotPermittedError(
                "Only the event owner or an admin can record bout results"
            )

        await self._repository.set_result(bout, normalized, method=method)
        logger.info(
            "Bout %s result set to %s by %s", bout_id, normalized or "unresolved", actor.id
        )

        records: list[RecordUpdateResponse] = []
        for fighter_id in dict.fromkeys((bout.red_fighter_id, bout.blue_fighter_id)):
            if fighter_id is None:
                continue
            records.append(await self.recalculate(fighter_id))

        return BoutResultResponse(
            bout_id=bout.id,
            winner_side=normalized,
            method=bout.method,
            records=records,
        )


def _validate_fight_fields(values: Mapping[str, Any]) -> None:
    for field in REQUIRED_FIGHT_FIELDS:
        if field in values and values[field] in (None, ""):
            raise InvalidFightHistoryError(f"{field} cannot be empty")

    result = values.get("result")
    if result is not None and result not in FIGHT_RESULTS:
        raise InvalidFightHistoryError("result must be win, loss, draw, or no_contest")

    event_date = values.get("event_date")
    if isinstance(event_date, date) and event_date > date.today():
        raise InvalidFightHistoryError("Fight history dates cannot be in the future")


class FightHistoryService:
    """CRUD for manual fight-history entries; each mutation refreshes the record."""

    def __init__(
        self, repository: RecordRepository, record_service: FighterRecordService
    ) -> None:
        self._repository = repository
        self._records = record_service

    async def list_entries(self, fighter_id: str) -> list[FightHistoryEntryResponse]:
        entries = await self._repository.list_fight_history(fighter_id)
        return [FightHistoryEntryResponse.model_validate(entry) for entry in entries]

    async def create_entry(
        self, fighter_id: str, payload: FightHistoryCreate, *, actor: Profile
    ) -> FightHistoryMutationResponse:
        if actor.id != fighter_id:
            raise NotPermittedError("You can only add to your own fight history")
        if await self._repository.get_profile(fighter_id) is None:
            raise FighterNotFoundError(fighter_id)

        values = payload.model_dump()
        _validate_fight_fields(values)
        entry = await self._repository.add_fight_history_entry(fighter_id, values)
        logger.info("Fighter %s added fight history entry %s", fighter_id, entry.id)
        return await self._respond(entry, fighter_id)

    async def update_entry(
        self, entry_id: str, payload: FightHistoryUpdate, *, actor: Profile
    ) -> FightHistoryMutationResponse:
        entry = await self._owned_entry(
            entry_id, actor, "You can only update your own fight history"
        )
        values = payload.model_dump(exclude_unset=True)
        _validate_fight_fields(values)
        await self._repository.update_fight_history_entry(entry, values)
        return await self._respond(entry, entry.fighter_profile_id, guard=False)

    async def delete_entry(
        self, entry_id: str, *, actor: Profile
    ) -> FightHistoryMutationResponse:
        entry = await self._owned_entry(
            entry_id, actor, "You can only delete your own fight history"
        )
        fighter_id = entry.fighter_profile_id
        await self._repository.delete_fight_history_entry(entry)
        logger.info("Fighter %s deleted fight history entry %s", fighter_id, entry_id)
        record = await self._records.recalculate(fighter_id, guard=False)
        return FightHistoryMutationResponse(fight=None, record=record)

    async def _owned_entry(
        self, entry_id: str, actor: Profile, message: str
    ) -> FightHistoryEntry:
        entry = await self._repository.get_fight_history_entry(entry_id)
        if entry is None:
            raise FightHistoryEntryNotFoundError(entry_id)
        if entry.fighter_profile_id != actor.id:
            raise NotPermittedError(message)
        return entry

    async def _respond(
        self, entry: FightHistoryEntry, fighter_id: str, *, guard: bool = True
    ) -> FightHistoryMutationResponse:
        fight = FightHistoryEntryResponse.model_validate(entry)
        record = await self._records.recalculate(fighter_id, guard=guard)
        return FightHistoryMutationResponse(fight=fight, record=record)


__all__ = [
    "FightHistoryService",
    "FighterRecordService",
    "SKIP_REASON_LOST_WINS",
    "SKIP_REASON_NO_BOUTS",
]
