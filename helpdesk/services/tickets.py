from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from helpdesk.db.base import utcnow
from helpdesk.errors import NotFound, ValidationError
from helpdesk.models.assets import Equipment
from helpdesk.models.directory import Department, User
from helpdesk.models.tickets import Ticket
from helpdesk.rules import Action, Principal, TicketStatus, escalate, ticket_read_scope
from helpdesk.rules.escalation import ESCALATED_STATUS
from helpdesk.rules.routing import TicketAssigned, TicketCreated, TicketStatusChanged
from helpdesk.schemas.tickets import TicketCreate, TicketUpdate
from helpdesk.services import notifications
from helpdesk.services.common import get_or_404, require

logger = logging.getLogger(__name__)

_RESOLVING_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})


def _detail_options() -> tuple:
    return (
        selectinload(Ticket.creator),
        selectinload(Ticket.assignee),
        selectinload(Ticket.equipment),
        selectinload(Ticket.department),
        selectinload(Ticket.target_department),
    )


def _check_references(db: Session, fields: dict[str, Any]) -> None:
    if fields.get("equipment_id") is not None:
        get_or_404(db, Equipment, fields["equipment_id"], "Equipment")
    for key in ("department_id", "target_department_id"):
        if fields.get(key) is not None:
            get_or_404(db, Department, fields[key], "Department")


def _set_status(ticket: Ticket, status: TicketStatus) -> None:
    ticket.status = status
    if status in _RESOLVING_STATUSES and ticket.resolved_at is None:
        ticket.resolved_at = utcnow()


def _apply_assignee(ticket: Ticket, user_id: int | None) -> None:
    ticket.assigned_to = user_id
    ticket.status = TicketStatus.IN_PROGRESS if user_id is not None else TicketStatus.OPEN


def _notify_status(db: Session, ticket: Ticket) -> None:
    notifications.dispatch(
        db,
        TicketStatusChanged(
            title=ticket.title,
            status=ticket.status.value,
            created_by=ticket.created_by,
            assigned_to=ticket.assigned_to,
        ),
    )


def list_tickets(db: Session, principal: Principal) -> list[Ticket]:
    """Newest first. Employees only get the tickets they created."""

    stmt = select(Ticket).options(*_detail_options()).order_by(Ticket.created_at.desc(), Ticket.id.desc())
    creator_id = ticket_read_scope(principal)
    if creator_id is not None:
        stmt = stmt.where(Ticket.created_by == creator_id)
    return list(db.scalars(stmt).all())


def get_ticket(db: Session, ticket_id: int) -> Ticket:
    ticket = db.scalars(select(Ticket).where(Ticket.id == ticket_id).options(*_detail_options())).first()
    if ticket is None:
        # Scoped routes also land here for tickets outside the caller's scope.
        raise NotFound("Ticket not found")
    return ticket


def create_ticket(db: Session, principal: Principal, data: TicketCreate) -> Ticket:
    created_by = data.created_by if data.created_by is not None else principal.user_id
    ticket = Ticket(
        title=data.title,
        description=data.description,
        type=data.type,
        priority=data.priority,
        status=TicketStatus.OPEN,
        created_by=created_by,
        equipment_id=data.equipment_id,
        department_id=data.department_id,
        target_department_id=data.target_department_id,
    )
    require(principal, Action.TICKET_CREATE, ticket)

    creator = get_or_404(db, User, created_by, "User")
    _check_references(db, data.model_dump())
    if ticket.department_id is None:
        ticket.department_id = creator.department_id

    db.add(ticket)
    db.commit()
    db.refresh(ticket)

    logger.info(
        "ticket_created",
        extra={"ticket_id": ticket.id, "user_id": principal.user_id, "priority": ticket.priority.value},
    )
    notifications.dispatch(
        db,
        TicketCreated(
            title=ticket.title,
            created_by=ticket.created_by,
            department_id=ticket.department_id,
            target_department_id=ticket.target_department_id,
        ),
    )
    return ticket


def update_ticket(db: Session, principal: Principal, ticket_id: int, data: TicketUpdate) -> Ticket:
    """
    Partial update. Besides ``ticket.update``, the narrower rules apply to
    the fields they guard: the assignee goes through ``ticket.assign``,
    status Closed through ``ticket.close`` and Escalated through
    ``ticket.escalate``.
    """

    ticket = get_ticket(db, ticket_id)
    require(principal, Action.TICKET_UPDATE, ticket)

    changes = data.model_dump(exclude_unset=True)
    for required in ("title", "description", "type", "priority", "status"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be null")

    new_assignee: User | None = None
    assignee_changed = "assigned_to" in changes and changes["assigned_to"] != ticket.assigned_to
    if assignee_changed:
        if changes["assigned_to"] is not None:
            new_assignee = get_or_404(db, User, changes["assigned_to"], "User")
        require(principal, Action.TICKET_ASSIGN, new_assignee)

    status = changes.pop("status", None)
    status_changed = status is not None and status != ticket.status
    if status_changed and status is TicketStatus.CLOSED:
        require(principal, Action.TICKET_CLOSE, ticket)
    if status_changed and status is TicketStatus.ESCALATED:
        require(principal, Action.TICKET_ESCALATE, ticket)

    _check_references(db, changes)
    previous_status = ticket.status
    assigned_to = changes.pop("assigned_to", ticket.assigned_to)
    for key, value in changes.items():
        setattr(ticket, key, value)
    if assignee_changed:
        _apply_assignee(ticket, assigned_to)
    if status_changed:
        # An explicit status wins over the one implied by the assignee.
        _set_status(ticket, status)
        if status is TicketStatus.ESCALATED:
            ticket.priority = escalate(ticket.priority)

    db.commit()
    db.refresh(ticket)

    logger.info("ticket_updated", extra={"ticket_id": ticket.id, "user_id": principal.user_id})
    if ticket.status != previous_status:
        _notify_status(db, ticket)
    if assignee_changed and new_assignee is not None:
        notifications.dispatch(db, TicketAssigned(ticket.title, new_assignee.id))
    return ticket


def assign_ticket(db: Session, principal: Principal, ticket_id: int, user_id: int | None) -> Ticket:
    """Assign (status InProgress) or unassign with None (status Open)."""

    ticket = get_ticket(db, ticket_id)
    assignee = get_or_404(db, User, user_id, "User") if user_id is not None else None
    require(principal, Action.TICKET_ASSIGN, assignee)

    _apply_assignee(ticket, user_id)
    db.commit()
    db.refresh(ticket)

    logger.info(
        "ticket_assigned",
        extra={"ticket_id": ticket.id, "assigned_to": user_id, "user_id": principal.user_id},
    )
    if assignee is not None:
        notifications.dispatch(db, TicketAssigned(ticket.title, assignee.id))
    return ticket


def close_ticket(db: Session, principal: Principal, ticket_id: int) -> Ticket:
    ticket = get_ticket(db, ticket_id)
    require(principal, Action.TICKET_CLOSE, ticket)

    _set_status(ticket, TicketStatus.CLOSED)
    db.commit()
    db.refresh(ticket)

    logger.info("ticket_closed", extra={"ticket_id": ticket.id, "user_id": principal.user_id})
    _notify_status(db, ticket)
    return ticket


def escalate_ticket(db: Session, principal: Principal, ticket_id: int) -> Ticket:
    """One priority step up (saturating at Urgent) and status Escalated."""

    ticket = get_ticket(db, ticket_id)
    require(principal, Action.TICKET_ESCALATE, ticket)

    previous = ticket.priority
    ticket.priority = escalate(ticket.priority)
    ticket.status = ESCALATED_STATUS
    db.commit()
    db.refresh(ticket)

    logger.info(
        "ticket_escalated",
        extra={
            "ticket_id": ticket.id,
            "from_priority": previous.value,
            "to_priority": ticket.priority.value,
            "user_id": principal.user_id,
        },
    )
    _notify_status(db, ticket)
    return ticket


def delete_ticket(db: Session, principal: Principal, ticket_id: int) -> None:
    ticket = get_ticket(db, ticket_id)
    require(principal, Action.TICKET_DELETE, ticket)

    # Comments go with it (relationship cascade).
    db.delete(ticket)
    db.commit()

    logger.info("ticket_deleted", extra={"ticket_id": ticket_id, "user_id": principal.user_id})
