from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.errors import Unauthenticated
from helpdesk.models.directory import User
from helpdesk.rules import Principal, ticket_read_scope
from helpdesk.security.auth import extract_bearer_token, load_user
from helpdesk.security.config import SecurityConfig
from helpdesk.security.context import AuthzContext
from helpdesk.security.tokens import decode_token, token_user_id


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise Unauthenticated("Authentication required")
    return user


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise Unauthenticated("Authentication required")
    return principal


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency, driven by security_config.yaml.

    Resolves the bearer token to a stored user and leaves three things on
    request.state for the handler: `user` (ORM row), `principal` (what the
    rule evaluator consumes) and `authz` (what the data-layer filters read).
    The stored role wins over whatever role the token carries.
    """

    rule = config.match(request.url.path, request.method)
    if not rule.auth_required:
        return

    token = extract_bearer_token(request, config)
    user = load_user(db, token_user_id(decode_token(token)))

    principal = Principal(user_id=user.id, email=user.email, role=user.role)
    request.state.user = user
    request.state.principal = principal
    request.state.authz = AuthzContext(
        user_id=user.id,
        role=principal.role,
        scope_tickets=rule.scope_tickets,
        ticket_scope_user_id=ticket_read_scope(principal),
    )
    # The handler may share this session through the dependency cache.
    db.info["authz"] = request.state.authz
