from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from apex.db.models import Notification
from apex.db.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    async def notify(
        self,
        *,
        profile_id: str,
        type: str,
        actor_profile_id: str | None,
        data: dict[str, Any],
    ) -> Notification | None:
        """Insert a notification inside a savepoint.

        A failed insert is logged and rolled back to the savepoint so the
        surrounding payout transaction stays usable.
        """

        try:
            async with self._session.begin_nested():
                notification = Notification(
                    profile_id=profile_id,
                    type=type,
                    actor_profile_id=actor_profile_id,
                    data=data,
                )
                self._session.add(notification)
            return notification
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to create %s notification for profile %s: %s",
                type,
                profile_id,
                exc,
            )
            return None


__all__ = ["NotificationRepository"]
