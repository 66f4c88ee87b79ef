from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from helpdesk.db.base import Base
from helpdesk.db.session import SessionLocal, engine
from helpdesk.models import assets, notifications, tickets  # noqa: F401  (register tables)
from helpdesk.models.directory import Department, User
from helpdesk.rules.types import Role
from helpdesk.security.auth import hash_password
from helpdesk.settings import get_settings

DEMO_PASSWORD = "password123"


def init_db() -> None:
    """
    Create tables, then seed demo departments and accounts on an empty
    database (HELPDESK_SEED_DEMO_DATA=false turns the seed off).
    """

    Base.metadata.create_all(bind=engine)

    if not get_settings().seed_demo_data:
        return

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed(db)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Department.id).limit(1)).first() is not None


def seed(db: Session) -> None:
    it = Department(
        name="IT",
        description="Information technology",
        permissions={"tickets": True, "equipment": True, "users": True, "reports": True},
    )
    marketing = Department(
        name="Marketing",
        description="Marketing and communication",
        permissions={"tickets": True, "equipment": False, "users": False, "reports": False},
    )
    hr = Department(
        name="HR",
        description="Human resources",
        permissions={"tickets": True, "equipment": False, "users": True, "reports": True},
    )
    finance = Department(
        name="Finance",
        description="Accounting and finance",
        permissions={"tickets": True, "equipment": False, "users": False, "reports": True},
    )
    db.add_all([it, marketing, hr, finance])
    db.flush()

    password_hash = hash_password(DEMO_PASSWORD)
    admin = User(
        name="Helpdesk Admin",
        email="admin@helpdesk.local",
        password_hash=password_hash,
        role=Role.ADMIN,
        department_id=it.id,
    )
    tech = User(
        name="IT Support",
        email="it@helpdesk.local",
        password_hash=password_hash,
        role=Role.IT_PERSONNEL,
        department_id=it.id,
    )
    employee = User(
        name="Sample Employee",
        email="employee@helpdesk.local",
        password_hash=password_hash,
        role=Role.EMPLOYEE,
        department_id=marketing.id,
    )
    db.add_all([admin, tech, employee])
    db.flush()

    it.manager_id = admin.id
    db.commit()
