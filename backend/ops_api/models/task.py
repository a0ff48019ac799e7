"""
Task Models.

Single-table inheritance on task_type:
- ProjectTask: outsourced work, requires a vendor
- RoutineTask: recurring work with material lines, never has activities
- AssignedTask: work handed to one or more assignees

The sub-kind is fixed at creation; sub-kind columns stay NULL for the others.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Column, Date, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ops_shared.config.constants import TaskPriority, TaskStatus, TaskType

from .base import Base, BigIntId, TimestampMixin
from .tombstone import Tombstonable

if TYPE_CHECKING:
    from .inventory import Material, Vendor
    from .user import User


# Associative link rows. Not tombstonable: detaching a user removes them.
task_watcher = Table(
    "task_watcher",
    Base.metadata,
    Column("task_id", BigInteger, ForeignKey("task.id"), primary_key=True),
    Column("user_id", BigInteger, ForeignKey("app_user.id"), primary_key=True, index=True),
)

task_assignee = Table(
    "task_assignee",
    Base.metadata,
    Column("task_id", BigInteger, ForeignKey("task.id"), primary_key=True),
    Column("user_id", BigInteger, ForeignKey("app_user.id"), primary_key=True, index=True),
)


class Task(Tombstonable, TimestampMixin, Base):
    """
    Base task kind. Owned by its department (and organization) and by the
    user who created it.
    """

    __tablename__ = "task"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    task_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=TaskStatus.TODO, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default=TaskPriority.MEDIUM, nullable=False)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    created_by_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    watchers: Mapped[list["User"]] = relationship(secondary=task_watcher)

    __mapper_args__ = {
        "polymorphic_on": "task_type",
    }

    @property
    def supports_activities(self) -> bool:
        return self.task_type != TaskType.ROUTINE


class ProjectTask(Task):
    """Outsourced task; vendor is mandatory."""

    vendor_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("vendor.id"), nullable=True, index=True
    )
    estimated_cost_cents: Mapped[Optional[int]] = mapped_column(Integer)

    vendor: Mapped[Optional["Vendor"]] = relationship()

    __mapper_args__ = {
        "polymorphic_identity": TaskType.PROJECT,
    }


class RoutineTask(Task):
    """Recurring task. Materials are consumed directly; no activities."""

    scheduled_on: Mapped[Optional[date]] = mapped_column(Date)
    recurrence_end_date: Mapped[Optional[date]] = mapped_column(Date)

    material_lines: Mapped[list["RoutineTaskMaterial"]] = relationship(back_populates="task")

    __mapper_args__ = {
        "polymorphic_identity": TaskType.ROUTINE,
    }


class AssignedTask(Task):
    """Task handed to one or more users of the organization."""

    assignees: Mapped[list["User"]] = relationship(secondary=task_assignee)

    __mapper_args__ = {
        "polymorphic_identity": TaskType.ASSIGNED,
    }


class RoutineTaskMaterial(Base):
    """Material line of a routine task (material, quantity)."""

    __tablename__ = "routine_task_material"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("task.id"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("material.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    task: Mapped["RoutineTask"] = relationship(back_populates="material_lines")
    material: Mapped["Material"] = relationship()
