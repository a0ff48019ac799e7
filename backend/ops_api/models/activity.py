"""
Task Activity Models.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin
from .tombstone import Tombstonable

if TYPE_CHECKING:
    from .inventory import Material
    from .task import Task


class TaskActivity(Tombstonable, TimestampMixin, Base):
    """
    A progress entry logged against a project or assigned task.
    Routine tasks never carry activities.
    """

    __tablename__ = "task_activity"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("task.id"), nullable=False, index=True
    )
    activity_type: Mapped[Optional[str]] = mapped_column(String(40))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    created_by_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )

    task: Mapped["Task"] = relationship()
    material_lines: Mapped[list["ActivityMaterial"]] = relationship(back_populates="activity")


class ActivityMaterial(Base):
    """Material consumed by an activity (material, quantity)."""

    __tablename__ = "activity_material"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    activity_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("task_activity.id"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("material.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    activity: Mapped["TaskActivity"] = relationship(back_populates="material_lines")
    material: Mapped["Material"] = relationship()
