from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from helpdesk.errors import Conflict, ValidationError
from helpdesk.models.assets import Equipment
from helpdesk.models.directory import Department, User
from helpdesk.models.tickets import Ticket
from helpdesk.rules import Action, Principal
from helpdesk.rules.routing import ChangeKind, DepartmentChanged
from helpdesk.schemas.directory import DepartmentCreate, DepartmentUpdate
from helpdesk.services import notifications
from helpdesk.services.common import get_or_404, require

logger = logging.getLogger(__name__)


def _ensure_name_free(db: Session, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Department.id).where(Department.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Department.id != exclude_id)
    if db.execute(stmt.limit(1)).first() is not None:
        raise Conflict("Department name already in use")


def _check_manager(db: Session, manager_id: int | None) -> None:
    if manager_id is not None:
        get_or_404(db, User, manager_id, "Manager")


def list_departments(db: Session) -> list[Department]:
    return list(db.scalars(select(Department).order_by(Department.name)).all())


def get_department(db: Session, department_id: int) -> Department:
    return get_or_404(db, Department, department_id, "Department")


def create_department(db: Session, principal: Principal, data: DepartmentCreate) -> Department:
    require(principal, Action.DEPARTMENT_CREATE)
    _ensure_name_free(db, data.name)
    _check_manager(db, data.manager_id)

    department = Department(
        name=data.name,
        description=data.description,
        manager_id=data.manager_id,
        permissions=data.permissions.model_dump(),
    )
    db.add(department)
    db.commit()
    db.refresh(department)

    logger.info("department_created", extra={"department_id": department.id, "user_id": principal.user_id})
    notifications.dispatch(db, DepartmentChanged(ChangeKind.CREATED, department.name))
    return department


def update_department(db: Session, principal: Principal, department_id: int, data: DepartmentUpdate) -> Department:
    require(principal, Action.DEPARTMENT_UPDATE)
    department = get_department(db, department_id)

    changes: dict[str, Any] = data.model_dump(exclude_unset=True)
    if "name" in changes:
        if changes["name"] is None:
            raise ValidationError("name cannot be null")
        if changes["name"] != department.name:
            _ensure_name_free(db, changes["name"], exclude_id=department.id)
    if "manager_id" in changes:
        _check_manager(db, changes["manager_id"])
    if "permissions" in changes and changes["permissions"] is None:
        raise ValidationError("permissions cannot be null")

    for key, value in changes.items():
        setattr(department, key, value)

    db.commit()
    db.refresh(department)

    logger.info("department_updated", extra={"department_id": department.id, "user_id": principal.user_id})
    notifications.dispatch(db, DepartmentChanged(ChangeKind.UPDATED, department.name))
    return department


def delete_department(db: Session, principal: Principal, department_id: int) -> None:
    """Refused while any user or equipment still belongs to the department."""

    require(principal, Action.DEPARTMENT_DELETE)
    department = get_department(db, department_id)

    user_count = db.scalar(select(func.count(User.id)).where(User.department_id == department.id))
    if user_count:
        raise Conflict(f"Department still has {user_count} user(s)")
    equipment_count = db.scalar(select(func.count(Equipment.id)).where(Equipment.department_id == department.id))
    if equipment_count:
        raise Conflict(f"Department still has {equipment_count} equipment item(s)")

    db.execute(update(Ticket).where(Ticket.department_id == department.id).values(department_id=None))
    db.execute(
        update(Ticket).where(Ticket.target_department_id == department.id).values(target_department_id=None)
    )

    name = department.name
    db.delete(department)
    db.commit()

    logger.info("department_deleted", extra={"department_id": department_id, "user_id": principal.user_id})
    notifications.dispatch(db, DepartmentChanged(ChangeKind.DELETED, name))
