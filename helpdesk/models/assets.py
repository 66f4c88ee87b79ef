from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk.db.base import Base, str_enum, utcnow
from helpdesk.models.directory import Department, User
from helpdesk.rules.types import EquipmentStatus, EquipmentType


class Equipment(Base):
    __tablename__ = "equipment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[EquipmentType] = mapped_column(str_enum(EquipmentType, 20), nullable=False)
    brand: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Kept in lockstep with assigned_to_id by services.equipment.apply_assignment.
    status: Mapped[EquipmentStatus] = mapped_column(
        str_enum(EquipmentStatus, 20), default=EquipmentStatus.AVAILABLE, nullable=False, index=True
    )
    assigned_to_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )

    location: Mapped[str] = mapped_column(String(255), nullable=False)
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    warranty_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    assigned_to: Mapped[User | None] = relationship(foreign_keys=[assigned_to_id])
    department: Mapped[Department | None] = relationship(foreign_keys=[department_id])

    @property
    def department_name(self) -> str | None:
        return self.department.name if self.department is not None else None
