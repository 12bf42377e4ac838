from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from vacation_service.database import get_db
from vacation_service.models.notification import Notification
from vacation_service.routers.deps import get_actor_id
from vacation_service.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("/", response_model=List[NotificationResponse])
def get_notifications(
    related_id: Optional[int] = None,
    db: Session = Depends(get_db),
    actor_id: int = Depends(get_actor_id)
):
    query = db.query(Notification).filter(Notification.user_id == actor_id)
    if related_id is not None:
        query = query.filter(Notification.related_id == related_id)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()
