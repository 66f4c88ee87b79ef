from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.models.directory import User
from helpdesk.rules import Principal
from helpdesk.schemas.common import BulkDeleteRequest, BulkDeleteResult
from helpdesk.schemas.directory import PasswordChange, ProfileUpdate, UserCreate, UserOut, UserUpdate
from helpdesk.security.dependencies import get_principal
from helpdesk.services import users as users_service

router = APIRouter(prefix="/api/users", tags=["users"])


# Fixed paths first so they are not captured by /{id}.


@router.put("/profile", response_model=UserOut)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> User:
    return users_service.update_profile(db, principal, payload)


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    users_service.change_password(db, principal, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/bulk-delete", response_model=BulkDeleteResult)
def bulk_delete_users(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> BulkDeleteResult:
    return users_service.bulk_delete_users(db, principal, payload.ids)


@router.get("", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)) -> list[User]:
    return users_service.list_users(db)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> User:
    return users_service.create_user(db, principal, payload)


@router.get("/{id}", response_model=UserOut)
def get_user(id: int, db: Session = Depends(get_db)) -> User:
    return users_service.get_user(db, id)


@router.put("/{id}", response_model=UserOut)
def update_user(
    id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> User:
    return users_service.update_user(db, principal, id, payload)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    users_service.delete_user(db, principal, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
