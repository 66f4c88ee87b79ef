"""Tests for the authorization rule table (pure, no database)."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from helpdesk.rules import Action, Principal, Role, authorize, can, ticket_read_scope
from helpdesk.rules import authorization as authz

ADMIN = Principal(user_id=1, email="admin@example.com", role=Role.ADMIN)
TECH = Principal(user_id=2, email="it@example.com", role=Role.IT_PERSONNEL)
EMPLOYEE = Principal(user_id=3, email="emp@example.com", role=Role.EMPLOYEE)
OTHER_EMPLOYEE = Principal(user_id=4, email="other@example.com", role=Role.EMPLOYEE)

ALL_PRINCIPALS = [ADMIN, TECH, EMPLOYEE]


def _user(user_id: int, role: Role) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=role)


def _ticket(created_by: int = 3, assigned_to: int | None = None) -> SimpleNamespace:
    return SimpleNamespace(created_by=created_by, assigned_to=assigned_to)


def test_every_action_has_a_rule():
    assert set(authz.RULES) == set(Action)


def test_unknown_action_string_is_denied():
    decision = authorize(ADMIN, "ticket.teleport")
    assert not decision
    assert "no rule" in decision.reason


def test_decision_is_truthy_only_when_allowed():
    assert authorize(ADMIN, Action.DEPARTMENT_CREATE)
    assert not authorize(EMPLOYEE, Action.DEPARTMENT_CREATE)


def test_action_accepts_plain_strings():
    assert can(ADMIN, "department.delete")


@pytest.mark.parametrize(
    "action",
    [Action.DEPARTMENT_CREATE, Action.DEPARTMENT_UPDATE, Action.DEPARTMENT_DELETE],
)
def test_departments_are_admin_only(action):
    assert can(ADMIN, action)
    for principal in (TECH, EMPLOYEE):
        decision = authorize(principal, action)
        assert not decision.allowed
        assert decision.reason == authz.ADMIN_ONLY_DEPARTMENTS


@pytest.mark.parametrize("action", [Action.USER_CREATE, Action.USER_UPDATE])
def test_user_management_is_admin_only(action):
    target = _user(9, Role.EMPLOYEE)
    assert can(ADMIN, action, target)
    assert authorize(TECH, action, target).reason == authz.ADMIN_ONLY_USERS
    assert authorize(EMPLOYEE, action, target).reason == authz.ADMIN_ONLY_USERS


@pytest.mark.parametrize("principal", ALL_PRINCIPALS, ids=lambda p: p.role.value)
def test_nobody_can_delete_own_account(principal):
    decision = authorize(principal, Action.USER_DELETE, _user(principal.user_id, principal.role))
    assert not decision.allowed
    assert decision.reason == authz.CANNOT_DELETE_SELF


def test_admin_can_delete_other_users():
    assert can(ADMIN, Action.USER_DELETE, _user(5, Role.ADMIN))
    assert authorize(TECH, Action.USER_DELETE, _user(5, Role.EMPLOYEE)).reason == authz.ADMIN_ONLY_USERS


@pytest.mark.parametrize(
    "action",
    [Action.EQUIPMENT_CREATE, Action.EQUIPMENT_UPDATE, Action.EQUIPMENT_DELETE, Action.EQUIPMENT_ASSIGN],
)
def test_equipment_is_staff_only(action):
    assert can(ADMIN, action)
    assert can(TECH, action)
    assert not can(EMPLOYEE, action)


def test_ticket_create_only_for_self():
    assert can(EMPLOYEE, Action.TICKET_CREATE, _ticket(created_by=EMPLOYEE.user_id))
    decision = authorize(ADMIN, Action.TICKET_CREATE, _ticket(created_by=EMPLOYEE.user_id))
    assert decision.reason == authz.CREATE_TICKET_FOR_SELF


def test_ticket_update_parties():
    ticket = _ticket(created_by=EMPLOYEE.user_id)
    assert can(EMPLOYEE, Action.TICKET_UPDATE, ticket)
    assert can(TECH, Action.TICKET_UPDATE, ticket)
    assert authorize(OTHER_EMPLOYEE, Action.TICKET_UPDATE, ticket).reason == authz.TICKET_UPDATE_PARTIES


@pytest.mark.parametrize("assignee_role", [Role.ADMIN, Role.IT_PERSONNEL, Role.EMPLOYEE, None])
def test_employees_can_never_assign_tickets(assignee_role):
    assignee = _user(8, assignee_role) if assignee_role else None
    assert not can(EMPLOYEE, Action.TICKET_ASSIGN, assignee)


@pytest.mark.parametrize("principal", [ADMIN, TECH], ids=lambda p: p.role.value)
def test_staff_cannot_assign_tickets_to_employees(principal):
    decision = authorize(principal, Action.TICKET_ASSIGN, _user(8, Role.EMPLOYEE))
    assert decision.reason == authz.EMPLOYEE_NOT_ASSIGNABLE
    assert can(principal, Action.TICKET_ASSIGN, _user(8, Role.IT_PERSONNEL))
    assert can(principal, Action.TICKET_ASSIGN, None)


@pytest.mark.parametrize(
    "ticket",
    [_ticket(), _ticket(created_by=EMPLOYEE.user_id), _ticket(assigned_to=EMPLOYEE.user_id)],
)
def test_employees_can_never_escalate(ticket):
    decision = authorize(EMPLOYEE, Action.TICKET_ESCALATE, ticket)
    assert decision.reason == authz.EMPLOYEE_CANNOT_ESCALATE
    assert can(ADMIN, Action.TICKET_ESCALATE, ticket)
    assert can(TECH, Action.TICKET_ESCALATE, ticket)


def test_close_ticket_parties():
    ticket = _ticket(created_by=EMPLOYEE.user_id, assigned_to=TECH.user_id)
    assert can(EMPLOYEE, Action.TICKET_CLOSE, ticket)
    assert can(TECH, Action.TICKET_CLOSE, ticket)
    assert can(ADMIN, Action.TICKET_CLOSE, ticket)
    decision = authorize(OTHER_EMPLOYEE, Action.TICKET_CLOSE, ticket)
    assert decision.reason == "only creator/assignee/admin may close"


def test_unrelated_it_personnel_cannot_close():
    ticket = _ticket(created_by=EMPLOYEE.user_id, assigned_to=None)
    assert not can(TECH, Action.TICKET_CLOSE, ticket)


def test_delete_ticket_creator_or_admin():
    ticket = _ticket(created_by=EMPLOYEE.user_id, assigned_to=TECH.user_id)
    assert can(EMPLOYEE, Action.TICKET_DELETE, ticket)
    assert can(ADMIN, Action.TICKET_DELETE, ticket)
    assert authorize(TECH, Action.TICKET_DELETE, ticket).reason == authz.DELETE_TICKET_PARTIES


def test_comments_author_or_admin():
    comment = SimpleNamespace(author_id=EMPLOYEE.user_id)
    for action in (Action.COMMENT_EDIT, Action.COMMENT_DELETE):
        assert can(EMPLOYEE, action, comment)
        assert can(ADMIN, action, comment)
        assert authorize(TECH, action, comment).reason == authz.COMMENT_PARTIES
    assert can(OTHER_EMPLOYEE, Action.COMMENT_CREATE, _ticket())


def test_ticket_read_scope():
    assert ticket_read_scope(ADMIN) is None
    assert ticket_read_scope(TECH) is None
    assert ticket_read_scope(EMPLOYEE) == EMPLOYEE.user_id


def test_principal_coerces_role_strings():
    principal = Principal(user_id=1, email="x@example.com", role="it_personnel")
    assert principal.role is Role.IT_PERSONNEL
    assert principal.is_staff
    assert not principal.is_admin
