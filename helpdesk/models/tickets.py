from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk.db.base import Base, str_enum, utcnow
from helpdesk.models.assets import Equipment
from helpdesk.models.directory import Department, User
from helpdesk.rules.types import Priority, TicketStatus, TicketType


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[TicketType] = mapped_column(str_enum(TicketType, 20), nullable=False)
    priority: Mapped[Priority] = mapped_column(str_enum(Priority, 10), default=Priority.NORMAL, nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        str_enum(TicketStatus, 20), default=TicketStatus.OPEN, nullable=False, index=True
    )

    created_by: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    equipment_id: Mapped[int | None] = mapped_column(
        ForeignKey("equipment.id", ondelete="SET NULL"), nullable=True, index=True
    )
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )
    target_department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    creator: Mapped[User] = relationship(foreign_keys=[created_by])
    assignee: Mapped[User | None] = relationship(foreign_keys=[assigned_to])
    equipment: Mapped[Equipment | None] = relationship(foreign_keys=[equipment_id])
    department: Mapped[Department | None] = relationship(foreign_keys=[department_id])
    target_department: Mapped[Department | None] = relationship(foreign_keys=[target_department_id])

    comments: Mapped[list["Comment"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan", order_by="Comment.id"
    )

    @property
    def creator_name(self) -> str | None:
        return self.creator.name if self.creator is not None else None

    @property
    def assignee_name(self) -> str | None:
        return self.assignee.name if self.assignee is not None else None

    @property
    def equipment_name(self) -> str | None:
        return self.equipment.name if self.equipment is not None else None

    @property
    def department_name(self) -> str | None:
        return self.department.name if self.department is not None else None

    @property
    def target_department_name(self) -> str | None:
        return self.target_department.name if self.target_department is not None else None


class Comment(Base):
    __tablename__ = "ticket_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    ticket: Mapped[Ticket] = relationship(back_populates="comments")
    author: Mapped[User] = relationship(foreign_keys=[author_id])

    @property
    def author_name(self) -> str | None:
        return self.author.name if self.author is not None else None
