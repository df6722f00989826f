"""Persistence for fighter records, resolved bouts and manual fight history."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from apex.db.models import EventBout, FightHistoryEntry, Profile
from apex.db.repositories.base import BaseRepository
from apex.services.records import ManualFight, ResolvedBout

# Columns a fighter may edit on a manual entry.
FIGHT_HISTORY_EDITABLE_FIELDS = (
    "event_name",
    "event_date",
    "opponent_name",
    "location",
    "result",
    "result_method",
    "result_round",
    "result_time",
    "weight_class",
    "notes",
)


class RecordRepository(BaseRepository):
    """Load the inputs of the record calculator and store its outputs."""

    async def list_resolved_bouts(self, fighter_id: str) -> list[ResolvedBout]:
        """Return bouts the fighter took part in that have a winner side, newest first."""

        stmt = (
            select(
                EventBout.id,
                EventBout.winner_side,
                EventBout.red_fighter_id,
                EventBout.blue_fighter_id,
                EventBout.created_at,
            )
            .where(
                or_(
                    EventBout.red_fighter_id == fighter_id,
                    EventBout.blue_fighter_id == fighter_id,
                )
            )
            .where(EventBout.winner_side.is_not(None))
            .order_by(EventBout.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            ResolvedBout(
                bout_id=row.id,
                winner_side=row.winner_side,
                red_fighter_id=row.red_fighter_id,
                blue_fighter_id=row.blue_fighter_id,
                created_at=row.created_at,
            )
            for row in result.all()
        ]

    async def list_manual_fights(self, fighter_id: str) -> list[ManualFight]:
        stmt = select(FightHistoryEntry.result, FightHistoryEntry.event_date).where(
            FightHistoryEntry.fighter_profile_id == fighter_id
        )
        result = await self._session.execute(stmt)
        return [
            ManualFight(result=row.result, event_date=row.event_date)
            for row in result.all()
        ]

    async def save_record(
        self,
        profile: Profile,
        *,
        record: str,
        record_base: str | None,
        last_5_form: str | None,
        current_win_streak: int,
    ) -> Profile:
        profile.record = record
        profile.record_base = record_base
        profile.last_5_form = last_5_form
        profile.current_win_streak = current_win_streak
        await self._session.flush()
        return profile

    # -- Bouts ----------------------------------------------------------------

    async def get_bout(self, bout_id: str) -> EventBout | None:
        stmt = (
            select(EventBout)
            .options(selectinload(EventBout.event))
            .where(EventBout.id == bout_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_result(
        self, bout: EventBout, winner_side: str | None, *, method: str | None = None
    ) -> EventBout:
        bout.winner_side = winner_side
        if method is not None:
            bout.method = method
        await self._session.flush()
        return bout

    # -- Manual fight history -------------------------------------------------

    async def list_fight_history(self, fighter_id: str) -> list[FightHistoryEntry]:
        stmt = (
            select(FightHistoryEntry)
            .where(FightHistoryEntry.fighter_profile_id == fighter_id)
            .order_by(FightHistoryEntry.event_date.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_fight_history_entry(self, entry_id: str) -> FightHistoryEntry | None:
        return await self._session.get(FightHistoryEntry, entry_id)

    async def add_fight_history_entry(
        self, fighter_id: str, values: Mapping[str, Any]
    ) -> FightHistoryEntry:
        entry = FightHistoryEntry(
            fighter_profile_id=fighter_id,
            **{
                key: value
                for key, value in values.items()
                if key in FIGHT_HISTORY_EDITABLE_FIELDS
            },
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def update_fight_history_entry(
        self, entry: FightHistoryEntry, values: Mapping[str, Any]
    ) -> FightHistoryEntry:
        for key, value in values.items():
            if key in FIGHT_HISTORY_EDITABLE_FIELDS:
                setattr(entry, key, value)
        await self._session.flush()
        return entry

    async def delete_fight_history_entry(self, entry: FightHistoryEntry) -> None:
        await self._session.delete(entry)
        await self._session.flush()


__all__ = ["FIGHT_HISTORY_EDITABLE_FIELDS", "RecordRepository"]
