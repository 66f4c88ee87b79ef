from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.models.directory import User
from helpdesk.schemas.directory import LoginRequest, RegisterRequest, TokenOut, UserOut
from helpdesk.security.dependencies import get_current_user
from helpdesk.security.tokens import issue_token
from helpdesk.services import users as users_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenOut:
    user = users_service.authenticate(db, payload.email, payload.password)
    return TokenOut(token=issue_token(user), user=UserOut.model_validate(user))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> TokenOut:
    user = users_service.register(db, payload)
    return TokenOut(token=issue_token(user), user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> User:
    return user
