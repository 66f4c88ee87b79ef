"""
Notification routing.

``route(event, users)`` decides who hears about a lifecycle event and what
they are told. It only reads the event payload and the user roster passed
in, so the same inputs always produce the same drafts. Persisting the drafts
is the caller's job.

Users in the roster are duck-typed: anything with ``id``, ``role`` and
``department_id`` works (ORM rows, dataclasses, namedtuples).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .types import STAFF_ROLES, NotificationType, Role


@dataclass(frozen=True)
class NotificationDraft:
    user_id: int
    type: NotificationType
    title: str
    message: str


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class Event(Protocol):
    def recipients(self, users: Sequence[Any]) -> list[int]: ...

    def describe(self) -> tuple[NotificationType, str, str]: ...


# ---- Recipient predicates ------------------------------------------------------------


def _distinct(ids: Iterable[int | None], *, exclude: Iterable[int | None] = ()) -> list[int]:
    excluded = {e for e in exclude if e is not None}
    seen: set[int] = set()
    out: list[int] = []
    for user_id in ids:
        if user_id is None or user_id in excluded or user_id in seen:
            continue
        seen.add(user_id)
        out.append(user_id)
    return out


def _with_roles(users: Sequence[Any], roles: frozenset[Role]) -> list[int]:
    return _distinct(u.id for u in users if Role(u.role) in roles)


_ADMINS = frozenset({Role.ADMIN})


# ---- Ticket events -------------------------------------------------------------------


@dataclass(frozen=True)
class TicketCreated:
    title: str
    created_by: int
    department_id: int | None = None
    target_department_id: int | None = None

    def recipients(self, users: Sequence[Any]) -> list[int]:
        # Union of three independent conditions; a user matching several is listed once.
        def matches(user: Any) -> bool:
            if Role(user.role) in STAFF_ROLES:
                return True
            if self.target_department_id is not None and user.department_id == self.target_department_id:
                return True
            if self.department_id is not None and user.department_id == self.department_id:
                return True
            return False

        return _distinct((u.id for u in users if matches(u)), exclude=[self.created_by])

    def describe(self) -> tuple[NotificationType, str, str]:
        return NotificationType.INFO, "New ticket created", f'A new ticket "{self.title}" was created.'


@dataclass(frozen=True)
class TicketStatusChanged:
    title: str
    status: str
    created_by: int
    assigned_to: int | None = None

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _distinct([self.created_by, self.assigned_to])

    def describe(self) -> tuple[NotificationType, str, str]:
        return NotificationType.INFO, "Ticket status changed", f'Ticket "{self.title}" is now: {self.status}.'


@dataclass(frozen=True)
class TicketAssigned:
    title: str
    assignee_id: int

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _distinct([self.assignee_id])

    def describe(self) -> tuple[NotificationType, str, str]:
        return NotificationType.INFO, "Ticket assigned", f'You have been assigned to ticket "{self.title}".'


@dataclass(frozen=True)
class CommentAdded:
    ticket_title: str
    author_id: int
    created_by: int
    assigned_to: int | None = None

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _distinct([self.created_by, self.assigned_to], exclude=[self.author_id])

    def describe(self) -> tuple[NotificationType, str, str]:
        return NotificationType.INFO, "New comment", f'New comment on ticket "{self.ticket_title}".'


# ---- Inventory and directory events --------------------------------------------------


_CHANGE_TYPES = {
    ChangeKind.CREATED: NotificationType.SUCCESS,
    ChangeKind.UPDATED: NotificationType.INFO,
    ChangeKind.DELETED: NotificationType.WARNING,
}


@dataclass(frozen=True)
class EquipmentChanged:
    change: ChangeKind
    name: str
    equipment_id: int | None = None

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _with_roles(users, STAFF_ROLES)

    def describe(self) -> tuple[NotificationType, str, str]:
        titles = {
            ChangeKind.CREATED: ("Equipment added", f'Equipment "{self.name}" was added.'),
            ChangeKind.UPDATED: ("Equipment updated", f'Equipment "{self.name}" was updated.'),
            ChangeKind.DELETED: ("Equipment deleted", f'Equipment "{self.name}" (#{self.equipment_id}) was deleted.'),
        }
        title, message = titles[self.change]
        return _CHANGE_TYPES[self.change], title, message


@dataclass(frozen=True)
class DepartmentChanged:
    change: ChangeKind
    name: str

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _with_roles(users, _ADMINS)

    def describe(self) -> tuple[NotificationType, str, str]:
        titles = {
            ChangeKind.CREATED: ("New department", f'Department "{self.name}" was created.'),
            ChangeKind.UPDATED: ("Department updated", f'Department "{self.name}" was updated.'),
            ChangeKind.DELETED: ("Department deleted", f'Department "{self.name}" was deleted.'),
        }
        title, message = titles[self.change]
        return _CHANGE_TYPES[self.change], title, message


@dataclass(frozen=True)
class UserChanged:
    """Account created or deleted by an admin. Only those two kinds are routed to admins."""

    change: ChangeKind
    name: str

    def __post_init__(self) -> None:
        if self.change is ChangeKind.UPDATED:
            raise ValueError("use UserUpdatedByAdmin for account updates")

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _with_roles(users, _ADMINS)

    def describe(self) -> tuple[NotificationType, str, str]:
        if self.change is ChangeKind.CREATED:
            return NotificationType.INFO, "New user", f'User "{self.name}" was created.'
        return NotificationType.WARNING, "User deleted", f'The account "{self.name}" was deleted.'


@dataclass(frozen=True)
class UserUpdatedByAdmin:
    user_id: int

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _distinct([self.user_id])

    def describe(self) -> tuple[NotificationType, str, str]:
        return (
            NotificationType.INFO,
            "Account updated",
            "Your account details were updated by an administrator.",
        )


@dataclass(frozen=True)
class ProfileUpdated:
    user_id: int

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _distinct([self.user_id])

    def describe(self) -> tuple[NotificationType, str, str]:
        return NotificationType.SUCCESS, "Profile updated", "Your profile was updated."


@dataclass(frozen=True)
class PasswordChanged:
    user_id: int

    def recipients(self, users: Sequence[Any]) -> list[int]:
        return _distinct([self.user_id])

    def describe(self) -> tuple[NotificationType, str, str]:
        return NotificationType.SUCCESS, "Password changed", "Your password was changed."


# ---- Entry point ---------------------------------------------------------------------


def route(event: Event, users: Sequence[Any]) -> list[NotificationDraft]:
    """One draft per distinct recipient, all sharing the event's (type, title, message)."""

    kind, title, message = event.describe()
    return [
        NotificationDraft(user_id=user_id, type=kind, title=title, message=message)
        for user_id in event.recipients(users)
    ]
