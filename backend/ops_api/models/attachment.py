"""
Attachment Model.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Enum as SAEnum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId, TimestampMixin
from .kinds import ParentKind
from .tombstone import Tombstonable


class Attachment(Tombstonable, TimestampMixin, Base):
    """
    File metadata attached to a task, an activity or a comment.
    The file itself lives in external object storage.
    """

    __tablename__ = "attachment"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    parent_kind: Mapped[ParentKind] = mapped_column(
        SAEnum(ParentKind, native_enum=False, length=32), nullable=False
    )
    parent_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    file_type: Mapped[Optional[str]] = mapped_column(String(100))
    file_size: Mapped[Optional[int]] = mapped_column(Integer)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    uploaded_by_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_attachment_parent", "parent_kind", "parent_id"),
    )
