from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.models.notifications import Notification
from helpdesk.rules import Principal
from helpdesk.schemas.notifications import MarkedRead, NotificationOut
from helpdesk.security.dependencies import get_principal
from helpdesk.services import notifications as notifications_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationOut])
def list_notifications(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> list[Notification]:
    return notifications_service.list_notifications(db, principal)


@router.put("/read-all", response_model=MarkedRead)
def mark_all_read(db: Session = Depends(get_db), principal: Principal = Depends(get_principal)) -> MarkedRead:
    return MarkedRead(updated=notifications_service.mark_all_read(db, principal))


@router.put("/{id}/read", response_model=NotificationOut)
def mark_read(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Notification:
    return notifications_service.mark_read(db, principal, id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    notifications_service.delete_notification(db, principal, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
