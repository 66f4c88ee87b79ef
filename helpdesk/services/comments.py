from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from helpdesk.errors import NotFound
from helpdesk.models.tickets import Comment
from helpdesk.rules import Action, Principal
from helpdesk.rules.routing import CommentAdded
from helpdesk.services import notifications
from helpdesk.services.common import require
from helpdesk.services.tickets import get_ticket

logger = logging.getLogger(__name__)


def list_comments(db: Session, ticket_id: int) -> list[Comment]:
    get_ticket(db, ticket_id)
    stmt = (
        select(Comment)
        .where(Comment.ticket_id == ticket_id)
        .options(selectinload(Comment.author))
        .order_by(Comment.created_at, Comment.id)
    )
    return list(db.scalars(stmt).all())


def _get_comment(db: Session, ticket_id: int, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None or comment.ticket_id != ticket_id:
        raise NotFound("Comment not found")
    return comment


def add_comment(db: Session, principal: Principal, ticket_id: int, content: str) -> Comment:
    ticket = get_ticket(db, ticket_id)
    require(principal, Action.COMMENT_CREATE, ticket)

    comment = Comment(ticket_id=ticket.id, author_id=principal.user_id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info("comment_added", extra={"ticket_id": ticket.id, "comment_id": comment.id, "user_id": principal.user_id})
    notifications.dispatch(
        db,
        CommentAdded(
            ticket_title=ticket.title,
            author_id=principal.user_id,
            created_by=ticket.created_by,
            assigned_to=ticket.assigned_to,
        ),
    )
    return comment


def edit_comment(db: Session, principal: Principal, ticket_id: int, comment_id: int, content: str) -> Comment:
    comment = _get_comment(db, ticket_id, comment_id)
    require(principal, Action.COMMENT_EDIT, comment)

    comment.content = content
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, principal: Principal, ticket_id: int, comment_id: int) -> None:
    comment = _get_comment(db, ticket_id, comment_id)
    require(principal, Action.COMMENT_DELETE, comment)

    db.delete(comment)
    db.commit()
    logger.info("comment_deleted", extra={"ticket_id": ticket_id, "comment_id": comment_id, "user_id": principal.user_id})
