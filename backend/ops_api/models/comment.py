"""
Task Comment Model.

Comments form a tree keyed by (parent_kind, parent_id). A comment on a task
or activity has depth 1; a reply has its parent's depth + 1, at most 3.
Depth is stored and re-checked on every insert and restore.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Column, Enum as SAEnum, ForeignKey, Index, Integer, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin
from .kinds import ParentKind
from .tombstone import Tombstonable

if TYPE_CHECKING:
    from .user import User


comment_mention = Table(
    "comment_mention",
    Base.metadata,
    Column("comment_id", BigInteger, ForeignKey("task_comment.id"), primary_key=True),
    Column("user_id", BigInteger, ForeignKey("app_user.id"), primary_key=True, index=True),
)


class TaskComment(Tombstonable, TimestampMixin, Base):
    """Comment on a task, an activity, or another comment."""

    __tablename__ = "task_comment"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    parent_kind: Mapped[ParentKind] = mapped_column(
        SAEnum(ParentKind, native_enum=False, length=32), nullable=False
    )
    parent_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    organization_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("organization.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("department.id"), nullable=False, index=True
    )
    created_by_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_task_comment_parent", "parent_kind", "parent_id"),
    )

    mentions: Mapped[list["User"]] = relationship(secondary=comment_mention)
