from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria


@event.listens_for(Session, "do_orm_execute")
def _apply_authorization_filters(execute_state) -> None:
    """
    Transparent ticket read scoping.

    This keeps listing code unchanged:
        db.scalars(select(Ticket)).all()
    still returns only the caller's own tickets when the route asked for
    scoping and the caller is not allowed to see every ticket.
    """

    if not execute_state.is_select:
        return

    authz = execute_state.session.info.get("authz")
    if authz is None or not authz.scope_tickets:
        return

    creator_id = authz.ticket_scope_user_id
    if creator_id is None:
        return

    # Local import to avoid cycles.
    from helpdesk.models.tickets import Ticket  # noqa: WPS433 (local import)

    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(Ticket, lambda cls: cls.created_by == creator_id, include_aliases=True),
    )
