from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from helpdesk.db.session import get_db
from helpdesk.models.assets import Equipment
from helpdesk.rules import Principal
from helpdesk.schemas.assets import EquipmentAssign, EquipmentCreate, EquipmentOut, EquipmentUpdate
from helpdesk.schemas.common import BulkDeleteRequest, BulkDeleteResult
from helpdesk.security.dependencies import get_principal
from helpdesk.services import equipment as equipment_service

router = APIRouter(prefix="/api/equipment", tags=["equipment"])


@router.get("", response_model=list[EquipmentOut])
def list_equipment(db: Session = Depends(get_db)) -> list[Equipment]:
    return equipment_service.list_equipment(db)


@router.post("", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
def create_equipment(
    payload: EquipmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Equipment:
    return equipment_service.create_equipment(db, principal, payload)


@router.post("/bulk-delete", response_model=BulkDeleteResult)
def bulk_delete_equipment(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> BulkDeleteResult:
    return equipment_service.bulk_delete_equipment(db, principal, payload.ids)


@router.get("/{id}", response_model=EquipmentOut)
def get_equipment(id: int, db: Session = Depends(get_db)) -> Equipment:
    return equipment_service.get_equipment(db, id)


@router.put("/{id}", response_model=EquipmentOut)
def update_equipment(
    id: int,
    payload: EquipmentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Equipment:
    return equipment_service.update_equipment(db, principal, id, payload)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_equipment(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Response:
    equipment_service.delete_equipment(db, principal, id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{id}/assign", response_model=EquipmentOut)
def assign_equipment(
    id: int,
    payload: EquipmentAssign,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Equipment:
    return equipment_service.assign_equipment(db, principal, id, payload.user_id)


@router.put("/{id}/unassign", response_model=EquipmentOut)
def unassign_equipment(
    id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> Equipment:
    return equipment_service.unassign_equipment(db, principal, id)
