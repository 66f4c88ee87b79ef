from __future__ import annotations

from dataclasses import dataclass

from helpdesk.rules.types import Role


@dataclass(frozen=True)
class AuthzContext:
    """
    Per-request authorization context.

    Attached to request.state by the security dependency and copied onto
    Session.info so the data-layer filters can read it.
    """

    user_id: int
    role: Role

    # Route asked for ticket read scoping (security_config.yaml).
    scope_tickets: bool

    # Creator id listings are restricted to; None means every ticket is visible.
    ticket_scope_user_id: int | None
