"""
Material and Vendor Models.

Both are tenant-scoped leaves: tasks and activities reference them
associatively, they are never owned by a task.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId, TimestampMixin
from .tombstone import Tombstonable


class Material(Tombstonable, TimestampMixin, Base):
    """Stock item of a department. Name is unique per department among live rows."""

    __tablename__ = "material"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="pcs")
    category: Mapped[Optional[str]] = mapped_column(String(100))
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=True, index=True
    )

    __table_args__ = (
        Index("ix_material_dept_name", "department_id", "name"),
    )


class Vendor(Tombstonable, TimestampMixin, Base):
    """External supplier of an organization. Name, email and phone unique per organization."""

    __tablename__ = "vendor"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(40))
    description: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[Optional[float]] = mapped_column(Float)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=True, index=True
    )

    __table_args__ = (
        Index("ix_vendor_org_name", "organization_id", "name"),
    )
