from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from helpdesk.errors import Conflict, ValidationError
from helpdesk.models.assets import Equipment
from helpdesk.models.directory import Department, User
from helpdesk.models.tickets import Ticket
from helpdesk.rules import Action, EquipmentStatus, Principal
from helpdesk.rules.routing import ChangeKind, EquipmentChanged
from helpdesk.rules.types import ASSIGNMENT_STATUSES
from helpdesk.schemas.assets import EquipmentCreate, EquipmentUpdate
from helpdesk.schemas.common import BulkDeleteResult
from helpdesk.services import notifications
from helpdesk.services.common import bulk_delete, get_or_404, require

logger = logging.getLogger(__name__)


def apply_assignment(equipment: Equipment, user_id: int | None) -> None:
    """Set the assignee and the matching status together. The only writer of assigned_to_id."""

    equipment.assigned_to_id = user_id
    equipment.status = EquipmentStatus.IN_USE if user_id is not None else EquipmentStatus.AVAILABLE


_REQUIRED_FIELDS = ("name", "type", "brand", "model", "serial_number", "location")


def _status_for(
    requested: EquipmentStatus | None, assigned_to_id: int | None, *, assignment_changed: bool
) -> EquipmentStatus:
    """
    Status to store next to ``assigned_to_id``.

    A changed assignment always yields InUse or Available and rejects any
    other requested status. Hand-set statuses such as Broken are only
    accepted while the assignment stays as it is.
    """

    expected = EquipmentStatus.IN_USE if assigned_to_id is not None else EquipmentStatus.AVAILABLE
    if requested is None:
        return expected
    requested = EquipmentStatus(requested)
    if assignment_changed and requested is not expected:
        raise ValidationError(
            f"status {requested.value} conflicts with the assignment change, which sets {expected.value}"
        )
    if requested in ASSIGNMENT_STATUSES and requested is not expected:
        if assigned_to_id is None:
            raise ValidationError(f"status {requested.value} requires an assigned user")
        raise ValidationError(f"status {requested.value} is not allowed while the equipment is assigned")
    return requested


def _ensure_serial_free(db: Session, serial_number: str, exclude_id: int | None = None) -> None:
    stmt = select(Equipment.id).where(Equipment.serial_number == serial_number)
    if exclude_id is not None:
        stmt = stmt.where(Equipment.id != exclude_id)
    if db.execute(stmt.limit(1)).first() is not None:
        raise Conflict("Serial number already in use")


def _check_references(db: Session, fields: dict[str, Any]) -> None:
    if fields.get("assigned_to_id") is not None:
        get_or_404(db, User, fields["assigned_to_id"], "User")
    if fields.get("department_id") is not None:
        get_or_404(db, Department, fields["department_id"], "Department")


def list_equipment(db: Session) -> list[Equipment]:
    stmt = (
        select(Equipment)
        .options(selectinload(Equipment.department))
        .order_by(Equipment.created_at.desc(), Equipment.id.desc())
    )
    return list(db.scalars(stmt).all())


def get_equipment(db: Session, equipment_id: int) -> Equipment:
    return get_or_404(db, Equipment, equipment_id, "Equipment")


def create_equipment(db: Session, principal: Principal, data: EquipmentCreate) -> Equipment:
    require(principal, Action.EQUIPMENT_CREATE)

    fields = data.model_dump(exclude={"status", "assigned_to_id"})
    _ensure_serial_free(db, data.serial_number)
    _check_references(db, data.model_dump())
    status = _status_for(data.status, data.assigned_to_id, assignment_changed=data.assigned_to_id is not None)

    equipment = Equipment(**fields)
    apply_assignment(equipment, data.assigned_to_id)
    equipment.status = status

    db.add(equipment)
    db.commit()
    db.refresh(equipment)

    logger.info("equipment_created", extra={"equipment_id": equipment.id, "user_id": principal.user_id})
    notifications.dispatch(db, EquipmentChanged(ChangeKind.CREATED, equipment.name, equipment.id))
    return equipment


def update_equipment(db: Session, principal: Principal, equipment_id: int, data: EquipmentUpdate) -> Equipment:
    require(principal, Action.EQUIPMENT_UPDATE)
    equipment = get_equipment(db, equipment_id)

    changes = data.model_dump(exclude_unset=True)
    for required in _REQUIRED_FIELDS:
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be null")
    if "serial_number" in changes and changes["serial_number"] != equipment.serial_number:
        _ensure_serial_free(db, changes["serial_number"], exclude_id=equipment.id)
    _check_references(db, changes)

    assigned_to_id = changes.pop("assigned_to_id", equipment.assigned_to_id)
    requested_status = changes.pop("status", None)
    assignment_changed = assigned_to_id != equipment.assigned_to_id
    if requested_status is None and not assignment_changed:
        # Neither side of the pair changed: keep a hand-set status such as Broken.
        status = equipment.status
    else:
        status = _status_for(requested_status, assigned_to_id, assignment_changed=assignment_changed)

    for key, value in changes.items():
        setattr(equipment, key, value)
    apply_assignment(equipment, assigned_to_id)
    equipment.status = status

    db.commit()
    db.refresh(equipment)

    logger.info("equipment_updated", extra={"equipment_id": equipment.id, "user_id": principal.user_id})
    notifications.dispatch(db, EquipmentChanged(ChangeKind.UPDATED, equipment.name, equipment.id))
    return equipment


def assign_equipment(db: Session, principal: Principal, equipment_id: int, user_id: int | None) -> Equipment:
    """Assign to ``user_id`` (status InUse) or unassign with None (status Available)."""

    require(principal, Action.EQUIPMENT_ASSIGN)
    equipment = get_equipment(db, equipment_id)
    if user_id is not None:
        get_or_404(db, User, user_id, "User")

    apply_assignment(equipment, user_id)
    db.commit()
    db.refresh(equipment)

    logger.info(
        "equipment_assigned",
        extra={"equipment_id": equipment.id, "assigned_to_id": user_id, "user_id": principal.user_id},
    )
    notifications.dispatch(db, EquipmentChanged(ChangeKind.UPDATED, equipment.name, equipment.id))
    return equipment


def unassign_equipment(db: Session, principal: Principal, equipment_id: int) -> Equipment:
    return assign_equipment(db, principal, equipment_id, None)


def delete_equipment(db: Session, principal: Principal, equipment_id: int) -> None:
    require(principal, Action.EQUIPMENT_DELETE)
    equipment = get_equipment(db, equipment_id)

    ticket_count = db.scalar(select(func.count(Ticket.id)).where(Ticket.equipment_id == equipment.id))
    if ticket_count:
        raise Conflict(f"Equipment is referenced by {ticket_count} ticket(s)")

    name = equipment.name
    db.delete(equipment)
    db.commit()

    logger.info("equipment_deleted", extra={"equipment_id": equipment_id, "user_id": principal.user_id})
    notifications.dispatch(db, EquipmentChanged(ChangeKind.DELETED, name, equipment_id))


def bulk_delete_equipment(db: Session, principal: Principal, ids: Iterable[int]) -> BulkDeleteResult:
    return bulk_delete(ids, lambda equipment_id: delete_equipment(db, principal, equipment_id))
