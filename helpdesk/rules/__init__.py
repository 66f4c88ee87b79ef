"""
Pure business rules for the helpdesk: who may do what, and who hears about it.

This package has no dependency on other helpdesk packages (db, models,
services, routers). Everything here is a function of its arguments.
"""

from .authorization import Action, Decision, authorize, can, ticket_read_scope
from .escalation import escalate
from .routing import NotificationDraft, route
from .types import (
    EquipmentStatus,
    NotificationType,
    Principal,
    Priority,
    Role,
    TicketStatus,
)

__all__ = [
    "Action",
    "Decision",
    "EquipmentStatus",
    "NotificationDraft",
    "NotificationType",
    "Principal",
    "Priority",
    "Role",
    "TicketStatus",
    "authorize",
    "can",
    "escalate",
    "route",
    "ticket_read_scope",
]
