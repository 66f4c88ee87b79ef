from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from helpdesk.errors import Conflict, Unauthenticated, ValidationError
from helpdesk.models.assets import Equipment
from helpdesk.models.directory import Department, User
from helpdesk.models.tickets import Comment, Ticket
from helpdesk.rules import Action, Principal, Role
from helpdesk.rules.routing import (
    ChangeKind,
    PasswordChanged,
    ProfileUpdated,
    UserChanged,
    UserUpdatedByAdmin,
)
from helpdesk.schemas.common import BulkDeleteResult
from helpdesk.schemas.directory import (
    MIN_PASSWORD_LENGTH,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    UserCreate,
    UserUpdate,
)
from helpdesk.security.auth import hash_password, verify_password
from helpdesk.services import notifications
from helpdesk.services.common import bulk_delete, get_or_404, require
from helpdesk.services.equipment import apply_assignment

logger = logging.getLogger(__name__)


def _ensure_email_free(db: Session, email: str, exclude_id: int | None = None) -> None:
    stmt = select(User.id).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    if db.execute(stmt.limit(1)).first() is not None:
        raise Conflict("Email already in use")


def _check_department(db: Session, department_id: int | None) -> None:
    if department_id is not None:
        get_or_404(db, Department, department_id, "Department")


def _apply_user_fields(db: Session, user: User, changes: dict[str, Any]) -> None:
    if "email" in changes and changes["email"] != user.email:
        _ensure_email_free(db, changes["email"], exclude_id=user.id)
    if "department_id" in changes:
        _check_department(db, changes["department_id"])

    password = changes.pop("password", None)
    if password is not None:
        user.password_hash = hash_password(password)
    for key, value in changes.items():
        setattr(user, key, value)


def list_users(db: Session) -> list[User]:
    stmt = select(User).options(selectinload(User.department)).order_by(User.created_at.desc(), User.id.desc())
    return list(db.scalars(stmt).all())


def get_user(db: Session, user_id: int) -> User:
    return get_or_404(db, User, user_id, "User")


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == email)).first()


def create_user(db: Session, principal: Principal, data: UserCreate) -> User:
    require(principal, Action.USER_CREATE)
    _ensure_email_free(db, data.email)
    _check_department(db, data.department_id)

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role,
        department_id=data.department_id,
        avatar_url=data.avatar_url,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("user_created", extra={"target_user_id": user.id, "role": user.role.value, "user_id": principal.user_id})
    notifications.dispatch(db, UserChanged(ChangeKind.CREATED, user.name))
    return user


def update_user(db: Session, principal: Principal, user_id: int, data: UserUpdate) -> User:
    user = get_user(db, user_id)
    require(principal, Action.USER_UPDATE, user)

    changes = data.model_dump(exclude_unset=True)
    for required in ("name", "email", "role"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be null")
    _apply_user_fields(db, user, changes)

    db.commit()
    db.refresh(user)

    logger.info("user_updated", extra={"target_user_id": user.id, "user_id": principal.user_id})
    notifications.dispatch(db, UserUpdatedByAdmin(user.id))
    return user


def _detach_user(db: Session, user: User) -> None:
    """Remove or clear everything that points at ``user``. The caller commits."""

    for ticket in db.scalars(select(Ticket).where(Ticket.created_by == user.id)).all():
        db.delete(ticket)
    db.flush()

    db.execute(delete(Comment).where(Comment.author_id == user.id))
    notifications.delete_for_user(db, user.id)
    db.execute(update(Ticket).where(Ticket.assigned_to == user.id).values(assigned_to=None))
    db.execute(update(Department).where(Department.manager_id == user.id).values(manager_id=None))

    for equipment in db.scalars(select(Equipment).where(Equipment.assigned_to_id == user.id)).all():
        apply_assignment(equipment, None)


def delete_user(db: Session, principal: Principal, user_id: int) -> None:
    user = get_user(db, user_id)
    require(principal, Action.USER_DELETE, user)

    name = user.name
    _detach_user(db, user)
    db.delete(user)
    db.commit()

    logger.info("user_deleted", extra={"target_user_id": user_id, "user_id": principal.user_id})
    notifications.dispatch(db, UserChanged(ChangeKind.DELETED, name))


def bulk_delete_users(db: Session, principal: Principal, ids: Iterable[int]) -> BulkDeleteResult:
    return bulk_delete(ids, lambda user_id: delete_user(db, principal, user_id))


# ---- Self-service --------------------------------------------------------------------


def update_profile(db: Session, principal: Principal, data: ProfileUpdate) -> User:
    """Name, email, department and avatar of the caller. Role is not reachable from here."""

    user = get_user(db, principal.user_id)
    changes = data.model_dump(exclude_unset=True)
    for required in ("name", "email"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be null")
    _apply_user_fields(db, user, changes)

    db.commit()
    db.refresh(user)

    logger.info("profile_updated", extra={"user_id": user.id})
    notifications.dispatch(db, ProfileUpdated(user.id))
    return user


def change_password(db: Session, principal: Principal, data: PasswordChange) -> None:
    user = get_user(db, principal.user_id)
    if not verify_password(data.current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    if len(data.new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

    user.password_hash = hash_password(data.new_password)
    db.commit()

    logger.info("password_changed", extra={"user_id": user.id})
    notifications.dispatch(db, PasswordChanged(user.id))


def register(db: Session, data: RegisterRequest) -> User:
    """Self-service sign-up. The account is always an employee."""

    _ensure_email_free(db, data.email)
    _check_department(db, data.department_id)

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=Role.EMPLOYEE,
        department_id=data.department_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("user_registered", extra={"user_id": user.id})
    notifications.dispatch(db, UserChanged(ChangeKind.CREATED, user.name))
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed", extra={"email": email})
        raise Unauthenticated("Invalid email or password")
    return user
