"""
Pytest fixtures for the test suite.

Every test gets a fresh in-memory SQLite engine and a session bound to one
connection whose outer transaction is rolled back afterwards, so service
commits never leak between tests. API tests reuse the same session through
a `get_db` override.
"""
from __future__ import annotations

from collections.abc import Callable
from itertools import count
from pathlib import Path
from typing import Any

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from helpdesk.rules import Principal, Role

TEST_DB_URL = "sqlite:///:memory:"
SECURITY_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "security_config.yaml"
TEST_PASSWORD = "secret123"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from helpdesk.db.base import Base
    from helpdesk.models import assets, directory, notifications, tickets  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    The session joins the connection's transaction, so `session.commit()`
    inside services does not end it.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="session")
def test_password() -> str:
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash() -> str:
    from helpdesk.security.auth import hash_password

    return hash_password(TEST_PASSWORD)


class Factory:
    """Persist minimal valid rows; keyword arguments override any column."""

    def __init__(self, db: Session, password_hash: str):
        self.db = db
        self.password_hash = password_hash
        self._seq = count(1)

    def _save(self, obj: Any) -> Any:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def department(self, name: str | None = None, **fields: Any):
        from helpdesk.models.directory import Department

        n = next(self._seq)
        return self._save(Department(name=name or f"Department {n}", **fields))

    def user(self, role: Role = Role.EMPLOYEE, department=None, **fields: Any):
        from helpdesk.models.directory import User

        n = next(self._seq)
        fields.setdefault("name", f"{role.value} {n}")
        fields.setdefault("email", f"{role.value}{n}@example.com")
        fields.setdefault("password_hash", self.password_hash)
        if department is not None:
            fields.setdefault("department_id", department.id)
        return self._save(User(role=role, **fields))

    def equipment(self, **fields: Any):
        from helpdesk.models.assets import Equipment
        from helpdesk.rules.types import EquipmentType

        n = next(self._seq)
        fields.setdefault("name", f"Laptop {n}")
        fields.setdefault("type", EquipmentType.LAPTOP)
        fields.setdefault("brand", "Lenovo")
        fields.setdefault("model", "T14")
        fields.setdefault("serial_number", f"SN-{n:05d}")
        fields.setdefault("location", "Office 1")
        return self._save(Equipment(**fields))

    def ticket(self, creator, **fields: Any):
        from helpdesk.models.tickets import Ticket
        from helpdesk.rules.types import TicketType

        n = next(self._seq)
        fields.setdefault("title", f"Ticket {n}")
        fields.setdefault("description", "Something is broken")
        fields.setdefault("type", TicketType.INCIDENT)
        fields.setdefault("department_id", creator.department_id)
        return self._save(Ticket(created_by=creator.id, **fields))

    def comment(self, ticket, author, content: str = "Looking into it"):
        from helpdesk.models.tickets import Comment

        return self._save(Comment(ticket_id=ticket.id, author_id=author.id, content=content))


@pytest.fixture
def make(db_session, password_hash) -> Factory:
    return Factory(db_session, password_hash)


@pytest.fixture
def principal_of() -> Callable[[Any], Principal]:
    def build(user) -> Principal:
        return Principal(user_id=user.id, email=user.email, role=user.role)

    return build


@pytest.fixture
def auth_headers() -> Callable[[Any], dict[str, str]]:
    from helpdesk.security.tokens import issue_token

    def build(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user)}"}

    return build


@pytest.fixture
def client(db_session):
    """
    TestClient over the real app, without running the lifespan: the security
    config is loaded from the repository YAML and `get_db` yields the test
    session.
    """
    from helpdesk.db.session import bind_authz, get_db
    from helpdesk.main import create_app
    from helpdesk.security.config import load_security_config

    app = create_app()
    app.state.security_config = load_security_config(SECURITY_CONFIG_PATH)

    def _get_test_db(request: Request):
        bind_authz(db_session, request)
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    return TestClient(app)
