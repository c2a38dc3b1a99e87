"""
Notification endpoints
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.db.models import Notification, User
from app.utils.exceptions import NotFoundError, PersistenceError

router = APIRouter()


def _notification_to_api(n: Notification) -> dict:
    return {
        "id": str(n.id),
        "title": n.title,
        "message": n.message,
        "link": n.link,
        "read": n.read,
        "createdAt": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("")
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        query = db.query(Notification).filter(Notification.user_id == current_user.id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        items = query.order_by(Notification.created_at.desc()).limit(limit).all()
        unread = (
            db.query(Notification)
            .filter(Notification.user_id == current_user.id, Notification.read.is_(False))
            .count()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Notifications unavailable: %s", sanitize_for_log(e))
        items, unread = [], 0
    return {
        "ok": True,
        "notifications": [_notification_to_api(n) for n in items],
        "unreadCount": unread,
    }


@router.patch("/{notification_id}/read")
def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == current_user.id)
        .first()
    )
    if notification is None:
        raise NotFoundError("Notification")

    try:
        notification.read = True
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to mark notification %s read: %s", notification_id, sanitize_for_log(e))
        raise PersistenceError("Failed to mark notification as read")

    return {"ok": True, "success": True}
