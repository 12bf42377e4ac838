from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from vacation_service.core.config import settings
from vacation_service.models.notification import Notification


@dataclass(frozen=True)
class NotificationIntent:
    target_user_id: int
    title: str
    message: str
    related_plan_id: Optional[int] = None
    type: str = settings.vacation.notification_type


class NotificationDispatcher(Protocol):
    def deliver(self, intent: NotificationIntent) -> None: ...


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        type: str = "vacation",
        related_id: Optional[int] = None
    ) -> Notification:
        """
        Internal utility for creating notifications.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            related_id=related_id
        )
        db.add(notification)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(notification)
        return notification


class DbNotificationDispatcher:
    """
    Stores intents in the notifications table, where the real-time layer of
    the main application picks them up.
    """

    def __init__(self, db: Session):
        self.db = db

    def deliver(self, intent: NotificationIntent) -> None:
        NotificationService.create_notification(
            self.db,
            user_id=intent.target_user_id,
            title=intent.title,
            message=intent.message,
            type=intent.type,
            related_id=intent.related_plan_id,
        )
