from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from helpdesk.rules.types import NotificationType


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    read: bool
    created_at: datetime


class MarkedRead(BaseModel):
    updated: int
