"""Shared repository plumbing."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from apex.db.models import Event, Profile


class BaseRepository:
    """Base repository wrapping an :class:`AsyncSession`."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_profile(self, profile_id: str) -> Profile | None:
        return await self._session.get(Profile, profile_id)

    async def get_event(self, event_id: str) -> Event | None:
        return await self._session.get(Event, event_id)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        """Commit immediately; used when a write must survive a raised error."""

        await self._session.commit()
