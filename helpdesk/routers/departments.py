from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.models.directory import Department
from helpdesk.rules import Principal
from helpdesk.schemas.directory import DepartmentCreate, DepartmentOut, DepartmentUpdate
from helpdesk.security.dependencies import get_principal
from helpdesk.services import departments as departments_service

router = APIRouter(prefix="/api/departments", tags=["departments"])


@router.get("", response_model=list[DepartmentOut])
def list_departments(db: Session = Depends(get_db)) -> list[Department]:
    return departments_service.list_departments(db)


@router.post("", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Department:
    return departments_service.create_department(db, principal, payload)


@router.get("/{id}", response_model=DepartmentOut)
def get_department(id: int, db: Session = Depends(get_db)) -> Department:
    return departments_service.get_department(db, id)


@router.put("/{id}", response_model=DepartmentOut)
def update_department(
    id: int,
    payload: DepartmentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Department:
    return departments_service.update_department(db, principal, id, payload)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_department(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    departments_service.delete_department(db, principal, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
