"""Tests for department lifecycle operations (ORM)."""
from __future__ import annotations

import pytest

from helpdesk.errors import Conflict, Forbidden, NotFound
from helpdesk.models.directory import Department
from helpdesk.rules import Role
from helpdesk.schemas.directory import DepartmentCreate, DepartmentUpdate
from helpdesk.services import departments as departments_service


@pytest.fixture
def admin(make, principal_of):
    return principal_of(make.user(Role.ADMIN))


def test_delete_unreferenced_department(db_session, make, admin):
    dept = make.department()
    departments_service.delete_department(db_session, admin, dept.id)
    assert db_session.get(Department, dept.id) is None


def test_delete_with_user_is_conflict(db_session, make, admin):
    dept = make.department()
    make.user(department=dept)
    with pytest.raises(Conflict):
        departments_service.delete_department(db_session, admin, dept.id)


def test_delete_with_equipment_is_conflict(db_session, make, admin):
    dept = make.department()
    make.equipment(department_id=dept.id)
    with pytest.raises(Conflict):
        departments_service.delete_department(db_session, admin, dept.id)


def test_delete_clears_ticket_references(db_session, make, admin):
    dept = make.department()
    creator = make.user()
    ticket = make.ticket(creator, department_id=dept.id, target_department_id=dept.id)

    departments_service.delete_department(db_session, admin, dept.id)

    db_session.refresh(ticket)
    assert ticket.department_id is None
    assert ticket.target_department_id is None


def test_only_admins_manage_departments(db_session, make, principal_of):
    tech = principal_of(make.user(Role.IT_PERSONNEL))
    with pytest.raises(Forbidden) as excinfo:
        departments_service.create_department(db_session, tech, DepartmentCreate(name="Legal"))
    assert excinfo.value.reason == "only admins may manage departments"


def test_create_applies_default_permissions(db_session, admin):
    dept = departments_service.create_department(db_session, admin, DepartmentCreate(name="Legal"))
    assert dept.permissions == {"tickets": True, "equipment": False, "users": False, "reports": False}


def test_duplicate_name_is_conflict(db_session, make, admin):
    make.department(name="Legal")
    with pytest.raises(Conflict):
        departments_service.create_department(db_session, admin, DepartmentCreate(name="Legal"))


def test_unknown_manager_is_not_found(db_session, admin):
    with pytest.raises(NotFound):
        departments_service.create_department(db_session, admin, DepartmentCreate(name="Legal", manager_id=404))


def test_rename_to_existing_name_is_conflict(db_session, make, admin):
    make.department(name="Legal")
    other = make.department(name="Sales")
    with pytest.raises(Conflict):
        departments_service.update_department(db_session, admin, other.id, DepartmentUpdate(name="Legal"))


def test_list_is_sorted_by_name(db_session, make):
    make.department(name="Zeta")
    make.department(name="Alpha")
    assert [d.name for d in departments_service.list_departments(db_session)] == ["Alpha", "Zeta"]
