"""
Organization and Department Models.

Organization is the tenant: every other entity carries its organization_id.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin
from .tombstone import Tombstonable

if TYPE_CHECKING:
    from .user import User


class Organization(Tombstonable, TimestampMixin, Base):
    """
    Represents a tenant of the platform.
    Name, email and phone are unique among live organizations.
    The platform's own tenant (is_platform_org) can never be deleted.
    """

    __tablename__ = "organization"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(40))
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_platform_org: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    subscription_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Uniqueness among live rows is enforced in services, not by the index
    __table_args__ = (
        Index("ix_organization_name", "name"),
        Index("ix_organization_email", "email"),
    )

    departments: Mapped[list["Department"]] = relationship(back_populates="organization")
    users: Mapped[list["User"]] = relationship(back_populates="organization")


class Department(Tombstonable, TimestampMixin, Base):
    """
    A department inside an organization.
    Name is unique per organization among live departments.
    """

    __tablename__ = "department"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # No FK: app_user already references department
    manager_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("ix_department_org_name", "organization_id", "name"),
    )

    organization: Mapped["Organization"] = relationship(back_populates="departments")
    users: Mapped[list["User"]] = relationship(back_populates="department")
