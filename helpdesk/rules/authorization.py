"""
Declarative authorization table and its evaluator.

Every permission check in the service layer goes through ``authorize``. The
table below is the only place where roles and ownership are turned into
allow/deny decisions, so tests can enumerate the rules once instead of
re-deriving them per endpoint.

Targets are duck-typed: ORM rows and plain objects both work as long as they
carry the attributes a rule reads (``id``, ``role``, ``created_by``,
``assigned_to``, ``author_id``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .types import STAFF_ROLES, Principal, Role

logger = logging.getLogger(__name__)


class Action(str, Enum):
    DEPARTMENT_CREATE = "department.create"
    DEPARTMENT_UPDATE = "department.update"
    DEPARTMENT_DELETE = "department.delete"

    USER_CREATE = "user.create"
    USER_UPDATE = "user.update"
    USER_DELETE = "user.delete"

    EQUIPMENT_CREATE = "equipment.create"
    EQUIPMENT_UPDATE = "equipment.update"
    EQUIPMENT_DELETE = "equipment.delete"
    EQUIPMENT_ASSIGN = "equipment.assign"

    TICKET_CREATE = "ticket.create"
    TICKET_UPDATE = "ticket.update"
    TICKET_ASSIGN = "ticket.assign"
    TICKET_CLOSE = "ticket.close"
    TICKET_ESCALATE = "ticket.escalate"
    TICKET_DELETE = "ticket.delete"
    TICKET_LIST_ALL = "ticket.list_all"

    COMMENT_CREATE = "comment.create"
    COMMENT_EDIT = "comment.edit"
    COMMENT_DELETE = "comment.delete"


# Denial reasons. Callers match on these, keep them stable.
ADMIN_ONLY_DEPARTMENTS = "only admins may manage departments"
ADMIN_ONLY_USERS = "only admins may manage users"
CANNOT_DELETE_SELF = "cannot delete own account"
STAFF_ONLY_EQUIPMENT = "only admins and IT personnel may manage equipment"
STAFF_ONLY_EQUIPMENT_ASSIGN = "only admins and IT personnel may assign equipment"
CREATE_TICKET_FOR_SELF = "tickets can only be created for yourself"
TICKET_UPDATE_PARTIES = "only staff, the creator or the assignee may update a ticket"
STAFF_ONLY_TICKET_ASSIGN = "only admins and IT personnel may assign tickets"
EMPLOYEE_NOT_ASSIGNABLE = "employees cannot be assigned"
CLOSE_PARTIES = "only creator/assignee/admin may close"
EMPLOYEE_CANNOT_ESCALATE = "employees cannot escalate tickets"
DELETE_TICKET_PARTIES = "only creator or admin may delete a ticket"
STAFF_ONLY_LIST_ALL = "only admins and IT personnel may list all tickets"
COMMENT_PARTIES = "only author or admin may edit or delete a comment"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


Rule = Callable[[Principal, Any], Decision]


# ---- Rule building blocks ------------------------------------------------------------


def _roles(allowed: frozenset[Role], reason: str) -> Rule:
    def rule(principal: Principal, target: Any) -> Decision:
        return ALLOW if principal.role in allowed else deny(reason)

    return rule


def _admin_or(owner_attrs: tuple[str, ...], reason: str, *, staff: bool = False) -> Rule:
    """Allow admins (or all staff when ``staff``) and principals named by any owner attribute."""

    privileged = STAFF_ROLES if staff else frozenset({Role.ADMIN})

    def rule(principal: Principal, target: Any) -> Decision:
        if principal.role in privileged:
            return ALLOW
        for attr in owner_attrs:
            owner = getattr(target, attr, None)
            if owner is not None and owner == principal.user_id:
                return ALLOW
        return deny(reason)

    return rule


def _anyone(principal: Principal, target: Any) -> Decision:
    return ALLOW


def _delete_user(principal: Principal, target: Any) -> Decision:
    # Applies to admins too.
    if getattr(target, "id", None) == principal.user_id:
        return deny(CANNOT_DELETE_SELF)
    if principal.role is not Role.ADMIN:
        return deny(ADMIN_ONLY_USERS)
    return ALLOW


def _create_ticket(principal: Principal, target: Any) -> Decision:
    if getattr(target, "created_by", None) != principal.user_id:
        return deny(CREATE_TICKET_FOR_SELF)
    return ALLOW


def _assign_ticket(principal: Principal, assignee: Any) -> Decision:
    """``assignee`` is the user being assigned, or None to unassign."""
    if principal.role not in STAFF_ROLES:
        return deny(STAFF_ONLY_TICKET_ASSIGN)
    if assignee is not None and Role(getattr(assignee, "role")) is Role.EMPLOYEE:
        return deny(EMPLOYEE_NOT_ASSIGNABLE)
    return ALLOW


def _escalate_ticket(principal: Principal, target: Any) -> Decision:
    return deny(EMPLOYEE_CANNOT_ESCALATE) if principal.role is Role.EMPLOYEE else ALLOW


_ADMIN = frozenset({Role.ADMIN})


RULES: Mapping[Action, Rule] = {
    Action.DEPARTMENT_CREATE: _roles(_ADMIN, ADMIN_ONLY_DEPARTMENTS),
    Action.DEPARTMENT_UPDATE: _roles(_ADMIN, ADMIN_ONLY_DEPARTMENTS),
    Action.DEPARTMENT_DELETE: _roles(_ADMIN, ADMIN_ONLY_DEPARTMENTS),
    Action.USER_CREATE: _roles(_ADMIN, ADMIN_ONLY_USERS),
    Action.USER_UPDATE: _roles(_ADMIN, ADMIN_ONLY_USERS),
    Action.USER_DELETE: _delete_user,
    Action.EQUIPMENT_CREATE: _roles(STAFF_ROLES, STAFF_ONLY_EQUIPMENT),
    Action.EQUIPMENT_UPDATE: _roles(STAFF_ROLES, STAFF_ONLY_EQUIPMENT),
    Action.EQUIPMENT_DELETE: _roles(STAFF_ROLES, STAFF_ONLY_EQUIPMENT),
    Action.EQUIPMENT_ASSIGN: _roles(STAFF_ROLES, STAFF_ONLY_EQUIPMENT_ASSIGN),
    Action.TICKET_CREATE: _create_ticket,
    Action.TICKET_UPDATE: _admin_or(("created_by", "assigned_to"), TICKET_UPDATE_PARTIES, staff=True),
    Action.TICKET_ASSIGN: _assign_ticket,
    Action.TICKET_CLOSE: _admin_or(("created_by", "assigned_to"), CLOSE_PARTIES),
    Action.TICKET_ESCALATE: _escalate_ticket,
    Action.TICKET_DELETE: _admin_or(("created_by",), DELETE_TICKET_PARTIES),
    Action.TICKET_LIST_ALL: _roles(STAFF_ROLES, STAFF_ONLY_LIST_ALL),
    Action.COMMENT_CREATE: _anyone,
    Action.COMMENT_EDIT: _admin_or(("author_id",), COMMENT_PARTIES),
    Action.COMMENT_DELETE: _admin_or(("author_id",), COMMENT_PARTIES),
}


# ---- Evaluator -----------------------------------------------------------------------


def authorize(principal: Principal, action: Action, target: Any = None) -> Decision:
    """
    Evaluate ``action`` for ``principal`` against ``target``.

    Unknown actions fail closed.
    """

    try:
        action = Action(action)
    except ValueError:
        return deny(f"no rule for action {action!r}")
    rule = RULES.get(action)
    if rule is None:
        return deny(f"no rule for action {action!r}")
    decision = rule(principal, target)
    if not decision.allowed:
        logger.debug(
            "authz: denied user_id=%s role=%s action=%s reason=%s",
            principal.user_id,
            principal.role.value,
            action.value,
            decision.reason,
        )
    return decision


def can(principal: Principal, action: Action, target: Any = None) -> bool:
    return authorize(principal, action, target).allowed


def ticket_read_scope(principal: Principal) -> int | None:
    """
    Creator id that ticket listings must be restricted to, or None for no
    restriction.
    """

    if can(principal, Action.TICKET_LIST_ALL):
        return None
    return principal.user_id
