"""
In-app notifications for users and the admin panel.
"""
import logging
from typing import Optional, Dict, Any, List

from sqlalchemy.orm import Session

from app.db.models.notification import Notification, AdminNotification

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    type: str,
    title: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> Notification:
    notification = Notification(user_id=user_id, type=type, title=title, message=message, details=details)
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    logger.debug(f"Notification created: user_id={user_id}, type={type}")
    return notification


def list_notifications(db: Session, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def count_unread(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    ).count()


def mark_read(db: Session, user_id: int, notification_id: int) -> Optional[Notification]:
    """Mark one of the user's notifications read. Returns None if it is not theirs."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        return None
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    ).update({Notification.read: True}, synchronize_session=False)
    db.commit()
    return updated


def create_admin_notification(
    db: Session,
    type: str,
    title: str,
    message: str,
    severity: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> AdminNotification:
    notification = AdminNotification(type=type, title=title, message=message, severity=severity, details=details)
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    logger.info(f"Admin notification: type={type}, severity={severity}")
    return notification
