from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from helpdesk.rules.types import EquipmentStatus, EquipmentType


class EquipmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: EquipmentType
    brand: str = Field(min_length=1, max_length=255)
    model: str = Field(min_length=1, max_length=255)
    serial_number: str = Field(min_length=1, max_length=255)
    # None: derived from the assignment.
    status: EquipmentStatus | None = None
    assigned_to_id: int | None = None
    department_id: int | None = None
    location: str = Field(min_length=1, max_length=255)
    purchase_date: date | None = None
    warranty_expiry: date | None = None
    notes: str | None = None


class EquipmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: EquipmentType | None = None
    brand: str | None = Field(default=None, min_length=1, max_length=255)
    model: str | None = Field(default=None, min_length=1, max_length=255)
    serial_number: str | None = Field(default=None, min_length=1, max_length=255)
    status: EquipmentStatus | None = None
    assigned_to_id: int | None = None
    department_id: int | None = None
    location: str | None = Field(default=None, min_length=1, max_length=255)
    purchase_date: date | None = None
    warranty_expiry: date | None = None
    notes: str | None = None


class EquipmentAssign(BaseModel):
    user_id: int | None = None


class EquipmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: EquipmentType
    brand: str
    model: str
    serial_number: str
    status: EquipmentStatus
    assigned_to_id: int | None
    department_id: int | None
    department_name: str | None = None
    location: str
    purchase_date: date | None
    warranty_expiry: date | None
    notes: str | None
    created_at: datetime
