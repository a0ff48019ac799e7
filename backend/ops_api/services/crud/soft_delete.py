"""
Soft Delete Core: single-record tombstone transitions.

This module provides functions to:
- Tombstone an entity (is_deleted, deleted_at, deleted_by_id)
- Restore a tombstoned entity
- Apply either transition to many rows at once
- Find live or tombstoned entities by id

Each call writes at most one row per entity and touches no children:
cascading belongs to the lifecycle engine. Changes are flushed, never
committed, so the caller's transaction sees its own writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ops_api.models import EntityKind, Tombstonable, utcnow
from ops_shared.utils.exceptions import NotFoundError

T = TypeVar("T", bound=Tombstonable)


@dataclass(frozen=True)
class Transition(Generic[T]):
    """Result of a single-record transition. changed is False for no-ops."""

    record: T
    changed: bool


def soft_delete(db: Session, entity: T, actor_id: int | None) -> Transition[T]:
    """
    Tombstone an entity.

    Idempotent: an already tombstoned entity keeps its first deleted_at
    and deleted_by_id, and the call still succeeds.

    Args:
        db: Database session
        entity: The entity to tombstone
        actor_id: ID of the user performing the deletion

    Returns:
        Transition with changed=True when the entity was live
    """
    changed = entity.mark_deleted(actor_id)
    if changed:
        db.flush()
    return Transition(entity, changed)


def restore_entity(db: Session, entity: T) -> Transition[T]:
    """
    Bring a tombstoned entity back to life.

    Restoring a live entity is a no-op success.
    """
    if entity is None:
        raise ValueError("Cannot restore None entity")

    changed = entity.mark_restored()
    if changed:
        db.flush()
    return Transition(entity, changed)


def find_active_entity(db: Session, model_class: type[T], entity_id: int) -> T | None:
    """Find a live entity by ID."""
    return db.scalar(
        select(model_class)
        .where(model_class.id == entity_id, model_class.is_deleted.is_(False))
        .execution_options(include_tombstoned=True)
    )


def find_deleted_entity(db: Session, model_class: type[T], entity_id: int) -> T | None:
    """Find a tombstoned entity by ID."""
    return db.scalar(
        select(model_class)
        .where(model_class.id == entity_id, model_class.is_deleted.is_(True))
        .execution_options(include_tombstoned=True)
    )


def find_any_entity(db: Session, model_class: type[T], entity_id: int) -> T | None:
    """Find an entity by ID whatever its tombstone state."""
    return db.scalar(
        select(model_class)
        .where(model_class.id == entity_id)
        .execution_options(include_tombstoned=True)
    )


def _resolve_model(target: EntityKind | type[T]) -> type[T]:
    if isinstance(target, EntityKind):
        # Imported here: the registry sits above this module in the package graph
        from ops_api.services.lifecycle.registry import model_for

        return model_for(target)
    return target


def soft_delete_by_id(
    db: Session,
    kind: EntityKind | type[T],
    entity_id: int,
    actor_id: int | None,
) -> Transition[T]:
    """
    Tombstone an entity by kind (or model class) and ID.

    Raises:
        NotFoundError: If no entity (live or tombstoned) has this ID
    """
    model_class = _resolve_model(kind)
    entity = find_any_entity(db, model_class, entity_id)
    if entity is None:
        raise NotFoundError(model_class.__name__, entity_id)
    return soft_delete(db, entity, actor_id)


def restore_by_id(db: Session, kind: EntityKind | type[T], entity_id: int) -> Transition[T]:
    """
    Restore an entity by kind (or model class) and ID.

    Raises:
        NotFoundError: If no entity (live or tombstoned) has this ID
    """
    model_class = _resolve_model(kind)
    entity = find_any_entity(db, model_class, entity_id)
    if entity is None:
        raise NotFoundError(model_class.__name__, entity_id)
    return restore_entity(db, entity)


def soft_delete_many(
    db: Session,
    model_class: type[T],
    entity_ids: Iterable[int],
    actor_id: int | None,
) -> int:
    """
    Tombstone every live entity among entity_ids in one statement.

    Returns:
        Number of rows that changed (already tombstoned rows are skipped)
    """
    ids = list(entity_ids)
    if not ids:
        return 0
    result = db.execute(
        update(model_class)
        .where(model_class.id.in_(ids), model_class.is_deleted.is_(False))
        .values(is_deleted=True, deleted_at=utcnow(), deleted_by_id=actor_id)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def restore_many(db: Session, model_class: type[T], entity_ids: Iterable[int]) -> int:
    """
    Restore every tombstoned entity among entity_ids in one statement.

    Returns:
        Number of rows that changed
    """
    ids = list(entity_ids)
    if not ids:
        return 0
    result = db.execute(
        update(model_class)
        .where(model_class.id.in_(ids), model_class.is_deleted.is_(True))
        .values(is_deleted=False, deleted_at=None, deleted_by_id=None)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def filter_by_state(query, model_class: type[T], *, include_tombstoned: bool = False, only_tombstoned: bool = False):
    """
    Apply an explicit tombstone policy to a select.

    Args:
        query: The SQLAlchemy select to filter
        model_class: The model class being queried
        include_tombstoned: Keep tombstoned rows as well
        only_tombstoned: Keep only tombstoned rows

    Returns:
        The filtered select
    """
    # Explicit criteria replace the session-wide default filter
    query = query.execution_options(include_tombstoned=True)
    if only_tombstoned:
        return query.where(model_class.is_deleted.is_(True))
    if include_tombstoned:
        return query
    return query.where(model_class.is_deleted.is_(False))
