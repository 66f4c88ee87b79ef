from __future__ import annotations

import logging

from fastapi import Request
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from helpdesk.errors import Unauthenticated
from helpdesk.models.directory import User
from helpdesk.security.config import SecurityConfig

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(raw_password: str) -> str:
    return pwd_context.hash(raw_password)


def verify_password(raw_password: str, password_hash: str) -> bool:
    return pwd_context.verify(raw_password, password_hash)


def extract_bearer_token(request: Request, config: SecurityConfig) -> str:
    """
    Read `Authorization: Bearer <token>` (header name and prefix come from
    the security config). Anything missing or malformed is Unauthenticated.
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing %s header path=%s method=%s", header_name, request.url.path, request.method)
        raise Unauthenticated("Authentication required")

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid %s header format path=%s method=%s", header_name, request.url.path, request.method)
        raise Unauthenticated(f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.")

    token = raw[len(prefix) :].strip()
    if not token:
        raise Unauthenticated(f"Invalid {header_name}. Missing token after '{bearer_prefix}'.")
    return token


def load_user(db: Session, user_id: int) -> User:
    user = db.execute(
        select(User).where(User.id == user_id).options(selectinload(User.department))
    ).scalar_one_or_none()

    if user is None:
        raise Unauthenticated("Unknown user")

    return user
