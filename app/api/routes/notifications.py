from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.db.models.user import User
from app.schemas.support import NotificationResponse, NotificationListResponse
from app.services import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    notifications = notification_service.list_notifications(db, user.id, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=notification_service.count_unread(db, user.id),
    )


@router.post("/read-all")
def read_all(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    updated = notification_service.mark_all_read(db, user.id)
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def read_notification(
    notification_id: int,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    notification = notification_service.mark_read(db, user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return NotificationResponse.model_validate(notification)
