from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from helpdesk.rules.types import Priority, TicketStatus, TicketType


class TicketCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    type: TicketType
    priority: Priority = Priority.NORMAL
    # Defaults to the caller; anything else is refused.
    created_by: int | None = None
    equipment_id: int | None = None
    # Defaults to the creator's department.
    department_id: int | None = None
    target_department_id: int | None = None


class TicketUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    type: TicketType | None = None
    priority: Priority | None = None
    status: TicketStatus | None = None
    assigned_to: int | None = None
    equipment_id: int | None = None
    target_department_id: int | None = None


class TicketAssign(BaseModel):
    user_id: int | None = None


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    type: TicketType
    priority: Priority
    status: TicketStatus
    created_by: int
    creator_name: str | None = None
    assigned_to: int | None
    assignee_name: str | None = None
    equipment_id: int | None
    equipment_name: str | None = None
    department_id: int | None
    department_name: str | None = None
    target_department_id: int | None
    target_department_name: str | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    author_id: int
    author_name: str | None = None
    content: str
    created_at: datetime
