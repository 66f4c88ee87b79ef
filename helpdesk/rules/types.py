"""Shared value types: roles, statuses, priorities and the acting principal."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    IT_PERSONNEL = "it_personnel"
    EMPLOYEE = "employee"


STAFF_ROLES = frozenset({Role.ADMIN, Role.IT_PERSONNEL})


class TicketStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    ESCALATED = "Escalated"
    PENDING = "Pending"


class Priority(str, Enum):
    """Ticket priority. Declaration order is severity order."""

    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    URGENT = "Urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)


_PRIORITY_ORDER: tuple[Priority, ...] = tuple(Priority)


class TicketType(str, Enum):
    INCIDENT = "Incident"
    REQUEST = "Request"
    FAILURE = "Failure"
    REPLACEMENT = "Replacement"
    INSTALLATION = "Installation"
    MAINTENANCE = "Maintenance"


class EquipmentStatus(str, Enum):
    AVAILABLE = "Available"
    IN_USE = "InUse"
    BROKEN = "Broken"
    UNDER_MAINTENANCE = "UnderMaintenance"
    RETIRED = "Retired"


# Statuses that follow the assignment instead of being set by hand.
ASSIGNMENT_STATUSES = frozenset({EquipmentStatus.AVAILABLE, EquipmentStatus.IN_USE})


class EquipmentType(str, Enum):
    PC = "PC"
    LAPTOP = "Laptop"
    KEYBOARD = "Keyboard"
    MOUSE = "Mouse"
    CABLE = "Cable"
    ROUTER = "Router"
    SWITCH = "Switch"
    SERVER = "Server"
    MONITOR = "Monitor"
    PRINTER = "Printer"
    OTHER = "Other"


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor.

    Built once per request from the identity assertion and the stored user
    row. The role is the stored one, not whatever the token claimed.
    """

    user_id: int
    email: str
    role: Role

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
