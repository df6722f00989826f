from apex.db.repositories.base import BaseRepository
from apex.db.repositories.notification_repository import NotificationRepository
from apex.db.repositories.payout_repository import PayoutRepository
from apex.db.repositories.record_repository import RecordRepository

__all__ = [
    "BaseRepository",
    "NotificationRepository",
    "PayoutRepository",
    "RecordRepository",
]
