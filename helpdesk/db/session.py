from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from helpdesk.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Main DB dependency.

    Route handlers keep writing plain `select(Ticket)` queries; read scoping
    (employees only see their own tickets on listing routes) is applied by the
    `do_orm_execute` hook in helpdesk/db/filters.py, which reads
    `Session.info["authz"]`.
    """

    db = SessionLocal()
    try:
        bind_authz(db, request)
        yield db
    finally:
        db.close()


def bind_authz(db: Session, request: Request) -> None:
    """Attach (or clear) the request's AuthzContext on the session."""

    authz = getattr(getattr(request, "state", None), "authz", None)
    if authz is not None:
        db.info["authz"] = authz
    else:
        db.info.pop("authz", None)
