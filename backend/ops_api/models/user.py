"""
User Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ops_shared.config.constants import Roles

from .base import Base, BigIntId, TimestampMixin
from .tombstone import Tombstonable

if TYPE_CHECKING:
    from .organization import Department, Organization


class User(Tombstonable, TimestampMixin, Base):
    """
    A member of an organization, attached to one department.

    Among live users of an organization: email and employee_id are unique,
    and each department has at most one head (is_hod).
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_id: Mapped[Optional[str]] = mapped_column(String(40))
    position: Mapped[Optional[str]] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(20), default=Roles.USER, nullable=False)
    is_hod: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_platform_user: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    locked_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_user_org_email", "organization_id", "email"),
        Index("ix_user_org_employee", "organization_id", "employee_id"),
    )

    organization: Mapped["Organization"] = relationship(back_populates="users")
    department: Mapped["Department"] = relationship(back_populates="users")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        state = "deleted" if self.is_deleted else "live"
        return f"<User(id={self.id}, email='{self.email}', role={self.role}, {state})>"
