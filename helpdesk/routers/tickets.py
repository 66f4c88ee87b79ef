from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.models.tickets import Comment, Ticket
from helpdesk.rules import Principal
from helpdesk.schemas.tickets import (
    CommentCreate,
    CommentOut,
    CommentUpdate,
    TicketAssign,
    TicketCreate,
    TicketOut,
    TicketUpdate,
)
from helpdesk.security.dependencies import get_principal
from helpdesk.services import comments as comments_service
from helpdesk.services import tickets as tickets_service

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


@router.get("", response_model=list[TicketOut])
def list_tickets(db: Session = Depends(get_db), principal: Principal = Depends(get_principal)) -> list[Ticket]:
    # Also scoped by the data-layer filter (scope_tickets in security_config.yaml).
    return tickets_service.list_tickets(db, principal)


@router.post("", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: TicketCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Ticket:
    return tickets_service.create_ticket(db, principal, payload)


@router.get("/{id}", response_model=TicketOut)
def get_ticket(id: int, db: Session = Depends(get_db)) -> Ticket:
    return tickets_service.get_ticket(db, id)


@router.put("/{id}", response_model=TicketOut)
def update_ticket(
    id: int,
    payload: TicketUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Ticket:
    return tickets_service.update_ticket(db, principal, id, payload)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ticket(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    tickets_service.delete_ticket(db, principal, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{id}/assign", response_model=TicketOut)
def assign_ticket(
    id: int,
    payload: TicketAssign,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Ticket:
    return tickets_service.assign_ticket(db, principal, id, payload.user_id)


@router.put("/{id}/close", response_model=TicketOut)
def close_ticket(id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)) -> Ticket:
    return tickets_service.close_ticket(db, principal, id)


@router.put("/{id}/escalate", response_model=TicketOut)
def escalate_ticket(id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_principal)) -> Ticket:
    return tickets_service.escalate_ticket(db, principal, id)


# ---- Comments ------------------------------------------------------------------------


@router.get("/{id}/comments", response_model=list[CommentOut])
def list_comments(id: int, db: Session = Depends(get_db)) -> list[Comment]:
    return comments_service.list_comments(db, id)


@router.post("/{id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def add_comment(
    id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Comment:
    return comments_service.add_comment(db, principal, id, payload.content)


@router.put("/{id}/comments/{comment_id}", response_model=CommentOut)
def edit_comment(
    id: int,
    comment_id: int,
    payload: CommentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Comment:
    return comments_service.edit_comment(db, principal, id, comment_id, payload.content)


@router.delete("/{id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    comments_service.delete_comment(db, principal, id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
