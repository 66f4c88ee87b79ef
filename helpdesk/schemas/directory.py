from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from helpdesk.rules.types import Role
from helpdesk.schemas.common import Email

MIN_PASSWORD_LENGTH = 6


class DepartmentPermissions(BaseModel):
    tickets: bool = True
    equipment: bool = False
    users: bool = False
    reports: bool = False


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    manager_id: int | None = None
    permissions: DepartmentPermissions = Field(default_factory=DepartmentPermissions)


class DepartmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    manager_id: int | None = None
    permissions: DepartmentPermissions | None = None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    manager_id: int | None
    permissions: DepartmentPermissions
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Email
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    role: Role = Role.EMPLOYEE
    department_id: int | None = None
    avatar_url: str | None = None


class UserUpdate(BaseModel):
    """Admin update. Only fields present in the payload are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: Email | None = None
    password: str | None = Field(default=None, min_length=MIN_PASSWORD_LENGTH)
    role: Role | None = None
    department_id: int | None = None
    avatar_url: str | None = None


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: Email | None = None
    department_id: int | None = None
    avatar_url: str | None = None


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role
    department_id: int | None
    department_name: str | None = None
    avatar_url: str | None
    created_at: datetime


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Email
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    department_id: int | None = None


class TokenOut(BaseModel):
    token: str
    user: UserOut
