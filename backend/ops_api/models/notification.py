"""
Notification Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Enum as SAEnum, ForeignKey, Index, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin
from .kinds import EntityKind
from .tombstone import Tombstonable

if TYPE_CHECKING:
    from .user import User


notification_recipient = Table(
    "notification_recipient",
    Base.metadata,
    Column("notification_id", BigInteger, ForeignKey("notification.id"), primary_key=True),
    Column("user_id", BigInteger, ForeignKey("app_user.id"), primary_key=True, index=True),
)


class Notification(Tombstonable, TimestampMixin, Base):
    """
    Message to a set of users of one department, optionally about an entity
    (entity_kind, entity_id). Recipients share organization and department.
    """

    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False, default="Info")
    entity_kind: Mapped[Optional[EntityKind]] = mapped_column(
        SAEnum(EntityKind, native_enum=False, length=32), nullable=True
    )
    entity_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_notification_entity", "entity_kind", "entity_id"),
    )

    recipients: Mapped[list["User"]] = relationship(secondary=notification_recipient)
