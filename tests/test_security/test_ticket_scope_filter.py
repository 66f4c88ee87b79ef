"""Tests for the do_orm_execute ticket read scoping."""
from __future__ import annotations

from sqlalchemy import select

from helpdesk.db import filters  # noqa: F401  (registers the listener)
from helpdesk.models.tickets import Ticket
from helpdesk.rules import Role
from helpdesk.security.context import AuthzContext


def _ids(db_session) -> set[int]:
    return {t.id for t in db_session.scalars(select(Ticket)).all()}


def test_scoped_employee_sees_only_own_tickets(db_session, make):
    me = make.user()
    other = make.user()
    mine = make.ticket(me)
    make.ticket(other)

    db_session.info["authz"] = AuthzContext(
        user_id=me.id, role=Role.EMPLOYEE, scope_tickets=True, ticket_scope_user_id=me.id
    )
    assert _ids(db_session) == {mine.id}


def test_unscoped_route_sees_everything(db_session, make):
    me = make.user()
    make.ticket(me)
    make.ticket(make.user())

    db_session.info["authz"] = AuthzContext(
        user_id=me.id, role=Role.EMPLOYEE, scope_tickets=False, ticket_scope_user_id=me.id
    )

    assert len(_ids(db_session)) == 2


def test_staff_are_never_narrowed(db_session, make):
    tech = make.user(Role.IT_PERSONNEL)
    make.ticket(make.user())
    make.ticket(make.user())

    db_session.info["authz"] = AuthzContext(
        user_id=tech.id, role=Role.IT_PERSONNEL, scope_tickets=True, ticket_scope_user_id=None
    )

    assert len(_ids(db_session)) == 2
