"""Tests for equipment lifecycle operations (ORM)."""
from __future__ import annotations

import pytest

from helpdesk.errors import Conflict, Forbidden, NotFound, ValidationError
from helpdesk.models.notifications import Notification
from helpdesk.rules import EquipmentStatus, Role
from helpdesk.schemas.assets import EquipmentCreate, EquipmentUpdate
from helpdesk.services import equipment as equipment_service


@pytest.fixture
def staff(make, principal_of):
    return principal_of(make.user(Role.IT_PERSONNEL))


@pytest.mark.parametrize("prior", list(EquipmentStatus))
def test_assign_forces_in_use_from_every_status(db_session, make, staff, prior):
    owner = make.user()
    item = make.equipment(status=prior)

    result = equipment_service.assign_equipment(db_session, staff, item.id, owner.id)

    assert result.assigned_to_id == owner.id
    assert result.status is EquipmentStatus.IN_USE


@pytest.mark.parametrize("prior", list(EquipmentStatus))
def test_unassign_forces_available_from_every_status(db_session, make, staff, prior):
    owner = make.user()
    item = make.equipment(status=prior, assigned_to_id=owner.id)

    result = equipment_service.unassign_equipment(db_session, staff, item.id)

    assert result.assigned_to_id is None
    assert result.status is EquipmentStatus.AVAILABLE


def test_employee_cannot_assign(db_session, make, principal_of):
    employee = make.user()
    item = make.equipment()
    with pytest.raises(Forbidden):
        equipment_service.assign_equipment(db_session, principal_of(employee), item.id, employee.id)


def test_assign_to_unknown_user_is_not_found(db_session, make, staff):
    item = make.equipment()
    with pytest.raises(NotFound):
        equipment_service.assign_equipment(db_session, staff, item.id, 999)


def _create_payload(**overrides) -> EquipmentCreate:
    data = {
        "name": "Dell monitor",
        "type": "Monitor",
        "brand": "Dell",
        "model": "P2422H",
        "serial_number": "MON-1",
        "location": "Desk 4",
    }
    data.update(overrides)
    return EquipmentCreate(**data)


def test_create_derives_status_from_assignment(db_session, make, staff):
    owner = make.user()
    free = equipment_service.create_equipment(db_session, staff, _create_payload())
    taken = equipment_service.create_equipment(
        db_session, staff, _create_payload(serial_number="MON-2", assigned_to_id=owner.id)
    )
    assert free.status is EquipmentStatus.AVAILABLE
    assert taken.status is EquipmentStatus.IN_USE


def test_create_rejects_in_use_without_assignee(db_session, staff):
    with pytest.raises(ValidationError):
        equipment_service.create_equipment(db_session, staff, _create_payload(status="InUse"))


def test_create_allows_broken_status(db_session, staff):
    item = equipment_service.create_equipment(db_session, staff, _create_payload(status="Broken"))
    assert item.status is EquipmentStatus.BROKEN


def test_duplicate_serial_is_conflict(db_session, make, staff):
    make.equipment(serial_number="MON-1")
    with pytest.raises(Conflict):
        equipment_service.create_equipment(db_session, staff, _create_payload())


def test_update_cannot_mark_assigned_item_available(db_session, make, staff):
    owner = make.user()
    item = make.equipment(status=EquipmentStatus.IN_USE, assigned_to_id=owner.id)
    with pytest.raises(ValidationError):
        equipment_service.update_equipment(db_session, staff, item.id, EquipmentUpdate(status="Available"))


def test_update_keeps_hand_set_status(db_session, make, staff):
    item = make.equipment(status=EquipmentStatus.UNDER_MAINTENANCE)
    result = equipment_service.update_equipment(db_session, staff, item.id, EquipmentUpdate(location="Lab"))
    assert result.location == "Lab"
    assert result.status is EquipmentStatus.UNDER_MAINTENANCE


def test_update_assignment_moves_status(db_session, make, staff):
    owner = make.user()
    item = make.equipment()
    result = equipment_service.update_equipment(
        db_session, staff, item.id, EquipmentUpdate(assigned_to_id=owner.id)
    )
    assert result.status is EquipmentStatus.IN_USE


def test_delete_blocked_by_ticket(db_session, make, staff):
    item = make.equipment()
    make.ticket(make.user(), equipment_id=item.id)
    with pytest.raises(Conflict):
        equipment_service.delete_equipment(db_session, staff, item.id)


def test_delete_notifies_staff(db_session, make, staff):
    admin = make.user(Role.ADMIN)
    item = make.equipment(name="Old router")

    equipment_service.delete_equipment(db_session, staff, item.id)

    rows = db_session.query(Notification).filter(Notification.user_id == admin.id).all()
    assert [r.title for r in rows] == ["Equipment deleted"]


def test_bulk_delete_keeps_going_past_failures(db_session, make, staff):
    a = make.equipment()
    b = make.equipment()
    make.ticket(make.user(), equipment_id=b.id)
    c = make.equipment()

    result = equipment_service.bulk_delete_equipment(db_session, staff, [a.id, b.id, c.id])

    assert result.deleted == [a.id, c.id]
    assert [(f.id, f.code) for f in result.failed] == [(b.id, "CONFLICT")]


def test_update_assign_rejects_hand_set_status(db_session, make, staff):
    owner = make.user()
    item = make.equipment()
    with pytest.raises(ValidationError):
        equipment_service.update_equipment(
            db_session, staff, item.id, EquipmentUpdate(assigned_to_id=owner.id, status="Broken")
        )
    db_session.refresh(item)
    assert item.assigned_to_id is None
    assert item.status is EquipmentStatus.AVAILABLE


def test_update_unassign_rejects_hand_set_status(db_session, make, staff):
    owner = make.user()
    item = make.equipment(status=EquipmentStatus.IN_USE, assigned_to_id=owner.id)
    with pytest.raises(ValidationError):
        equipment_service.update_equipment(
            db_session, staff, item.id, EquipmentUpdate(assigned_to_id=None, status="Retired")
        )


def test_update_unassign_moves_status_to_available(db_session, make, staff):
    owner = make.user()
    item = make.equipment(status=EquipmentStatus.IN_USE, assigned_to_id=owner.id)
    result = equipment_service.update_equipment(db_session, staff, item.id, EquipmentUpdate(assigned_to_id=None))
    assert result.assigned_to_id is None
    assert result.status is EquipmentStatus.AVAILABLE


def test_update_assign_accepts_matching_status(db_session, make, staff):
    owner = make.user()
    item = make.equipment(status=EquipmentStatus.BROKEN)
    result = equipment_service.update_equipment(
        db_session, staff, item.id, EquipmentUpdate(assigned_to_id=owner.id, status="InUse")
    )
    assert result.status is EquipmentStatus.IN_USE


def test_create_with_assignee_rejects_hand_set_status(db_session, make, staff):
    owner = make.user()
    with pytest.raises(ValidationError):
        equipment_service.create_equipment(db_session, staff, _create_payload(assigned_to_id=owner.id, status="Broken"))


@pytest.mark.parametrize("field", ["name", "type", "brand", "model", "serial_number", "location"])
def test_update_rejects_null_required_field(db_session, make, staff, field):
    item = make.equipment()
    with pytest.raises(ValidationError):
        equipment_service.update_equipment(db_session, staff, item.id, EquipmentUpdate(**{field: None}))
