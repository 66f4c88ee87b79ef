from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk.errors import NotFound
from helpdesk.models.directory import User
from helpdesk.models.notifications import Notification
from helpdesk.rules import Principal, route
from helpdesk.rules.routing import Event

logger = logging.getLogger(__name__)


def dispatch(db: Session, event: Event) -> list[Notification]:
    """
    Route ``event`` against the current roster and persist one row per
    recipient.

    Best-effort: called after the triggering change is committed, and any
    failure here is logged and swallowed so the caller's action still
    succeeds.
    """

    event_name = type(event).__name__
    try:
        users = db.scalars(select(User).order_by(User.id)).all()
        drafts = route(event, users)
    except Exception:
        logger.exception("notification_routing_failed", extra={"event": event_name})
        return []

    if not drafts:
        return []

    rows = [
        Notification(user_id=d.user_id, type=d.type, title=d.title, message=d.message, read=False)
        for d in drafts
    ]
    try:
        db.add_all(rows)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("notification_persist_failed", extra={"event": event_name, "count": len(rows)})
        return []

    logger.info("notifications_sent", extra={"event": event_name, "count": len(rows)})
    return rows


def list_notifications(db: Session, principal: Principal) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == principal.user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(db.scalars(stmt).all())


def _own_notification(db: Session, principal: Principal, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    # Someone else's notification looks exactly like a missing one.
    if notification is None or notification.user_id != principal.user_id:
        raise NotFound("Notification not found")
    return notification


def mark_read(db: Session, principal: Principal, notification_id: int) -> Notification:
    notification = _own_notification(db, principal, notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, principal: Principal) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == principal.user_id, Notification.read.is_(False))
        .values(read=True)
    )
    db.commit()
    return result.rowcount or 0


def delete_notification(db: Session, principal: Principal, notification_id: int) -> None:
    notification = _own_notification(db, principal, notification_id)
    db.delete(notification)
    db.commit()


def delete_for_user(db: Session, user_id: int) -> None:
    """Drop a user's notifications; the caller commits."""
    db.execute(delete(Notification).where(Notification.user_id == user_id))
