"""
Tombstone capability shared by every entity kind.

Each model composes Tombstonable explicitly. Importing this module installs
two session-wide hooks:

- reads: ORM SELECTs exclude tombstoned rows unless the statement carries the
  ``include_tombstoned`` or ``only_tombstoned`` execution option. Relationship
  loads (lazy or selectin) always see live targets only, whatever options
  loaded the parent; a tombstoned target is reached through a repository;
- deletes: physical deletes of tombstonable rows raise DirectDeletionForbidden,
  both through ``Session.delete()`` + flush and through ORM ``delete()``
  statements. Only the retention reaper passes ``allow_purge``.

Usage:
    select(User)                                             # live only
    select(User).execution_options(include_tombstoned=True)  # everything
    select(User).execution_options(only_tombstoned=True)     # tombstoned only
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, event
from sqlalchemy.orm import Mapped, ORMExecuteState, Session, mapped_column, with_loader_criteria

from ops_shared.utils.exceptions import DirectDeletionForbidden

from .base import utcnow

INCLUDE_TOMBSTONED = "include_tombstoned"
ONLY_TOMBSTONED = "only_tombstoned"
ALLOW_PURGE = "allow_purge"


class Tombstonable:
    """
    Mixin adding the tombstone triple (is_deleted, deleted_at, deleted_by_id).

    Methods:
    - mark_deleted(actor_id): stamp the tombstone unless already tombstoned
    - mark_restored(): clear the tombstone unless already live

    Both return True when they changed the record. Persisting is the
    caller's job (see services.crud.soft_delete).
    """

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    deleted_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    @property
    def is_live(self) -> bool:
        return not self.is_deleted

    def mark_deleted(self, actor_id: int | None) -> bool:
        # Idempotent: the first deletion timestamp is kept
        if self.is_deleted:
            return False
        self.is_deleted = True
        self.deleted_at = utcnow()
        self.deleted_by_id = actor_id
        return True

    def mark_restored(self) -> bool:
        if not self.is_deleted:
            return False
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by_id = None
        return True

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        state = "deleted" if self.is_deleted else "live"
        return f"<{class_name}(id={id_val}, {state})>"


def _wants_purge(options: dict[str, Any]) -> bool:
    return bool(options.get(ALLOW_PURGE, False))


@event.listens_for(Session, "do_orm_execute")
def _apply_tombstone_policy(execute_state: ORMExecuteState) -> None:
    """Filter reads and refuse bulk deletes for tombstonable entities."""
    options = execute_state.execution_options

    if execute_state.is_delete:
        mapper = execute_state.bind_mapper
        if (
            mapper is not None
            and issubclass(mapper.class_, Tombstonable)
            and not _wants_purge(options)
        ):
            raise DirectDeletionForbidden(mapper.class_.__name__)
        return

    if not execute_state.is_select or execute_state.is_column_load:
        return

    if execute_state.is_relationship_load:
        only_tombstoned = False
    elif options.get(INCLUDE_TOMBSTONED, False):
        return
    else:
        only_tombstoned = bool(options.get(ONLY_TOMBSTONED, False))

    # Not propagated: each relationship load comes back here on its own
    if only_tombstoned:
        criteria = with_loader_criteria(
            Tombstonable,
            lambda cls: cls.is_deleted.is_(True),
            include_aliases=True,
            propagate_to_loaders=False,
        )
    else:
        criteria = with_loader_criteria(
            Tombstonable,
            lambda cls: cls.is_deleted.is_(False),
            include_aliases=True,
            propagate_to_loaders=False,
        )
    execute_state.statement = execute_state.statement.options(criteria)


@event.listens_for(Session, "before_flush")
def _forbid_physical_delete(session: Session, flush_context: Any, instances: Any) -> None:
    """Refuse Session.delete() on tombstonable instances."""
    if _wants_purge(session.info):
        return
    for obj in session.deleted:
        if isinstance(obj, Tombstonable):
            raise DirectDeletionForbidden(
                type(obj).__name__,
                entity_id=getattr(obj, "id", None),
            )
