from __future__ import annotations

from .types import Priority, TicketStatus

ESCALATED_STATUS = TicketStatus.ESCALATED

_LADDER: tuple[Priority, ...] = tuple(Priority)


def escalate(priority: Priority) -> Priority:
    """Step priority up by one, saturating at Urgent."""
    rank = Priority(priority).rank
    return _LADDER[min(rank + 1, len(_LADDER) - 1)]
