"""
Base class for write services.

Write services create entities and enforce, at write time, the scope and
uniqueness rules the lifecycle validators re-check on restore. Violations
raise; nothing is written when a guard fails.
"""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ops_api.models import EntityKind
from ops_api.services.lifecycle.invariants import out_of_scope, partition_references
from ops_api.services.lifecycle.store import LifecycleStore
from ops_shared.config.logging import get_logger
from ops_shared.infrastructure.db import safe_commit
from ops_shared.utils.exceptions import (
    DatabaseError,
    DuplicateEntityError,
    NotFoundError,
    ScopeViolationError,
    ValidationError,
)

logger = get_logger(__name__)


class DomainService:
    """Shared lookups and guards for the write services."""

    def __init__(self, db: Session):
        self._db = db
        self._store = LifecycleStore(db)

    @property
    def store(self) -> LifecycleStore:
        return self._store

    # =========================================================================
    # Lookups
    # =========================================================================

    def _require_live(self, kind: EntityKind, entity_id: int | None, **log_context: Any) -> Any:
        """Load a live entity or raise NotFoundError."""
        entity = self._store.load(kind, entity_id, include_tombstoned=False)
        if entity is None:
            raise NotFoundError(kind.label, entity_id, **log_context)
        return entity

    def _require_department(self, organization_id: int, department_id: int) -> Any:
        department = self._require_live(EntityKind.DEPARTMENT, department_id)
        if department.organization_id != organization_id:
            raise ScopeViolationError(
                "Department", "organization", [department_id], organization_id=organization_id
            )
        return department

    def _require_all_live(self, kind: EntityKind, ids: Iterable[int], *, field: str) -> list[Any]:
        """Resolve ids to live entities; any unknown or tombstoned id raises."""
        wanted = list(ids)
        if len(set(wanted)) != len(wanted):
            raise ValidationError(f"Duplicate ids in {field}", field=field, ids=wanted)
        split = partition_references(self._db, wanted, kind)
        if not split.all_live:
            bad = split.tombstoned + split.missing
            raise NotFoundError(kind.label, bad[0], field=field, ids=bad)
        return list(self._store.repository(kind).find_many(split.live))

    def _require_in_scope(
        self,
        entities: Iterable[Any],
        *,
        owner: str,
        reference: str,
        organization_id: int,
        department_id: int | None = None,
    ) -> None:
        offenders = out_of_scope(entities, organization_id, department_id)
        if offenders:
            raise ScopeViolationError(owner, reference, offenders, organization_id=organization_id)

    # =========================================================================
    # Uniqueness among live rows
    # =========================================================================

    def _ensure_unique(
        self,
        kind: EntityKind,
        attr: str,
        value: Any,
        *scope: Any,
    ) -> None:
        """Raise DuplicateEntityError when a live row of kind already uses value."""
        if value is None or value == "":
            return
        repo = self._store.repository(kind)
        column = getattr(repo.model, attr)
        condition = func.lower(column) == value.lower() if isinstance(value, str) else column == value
        if repo.count(condition, *scope):
            raise DuplicateEntityError(kind.label, str(value), field=attr)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _save(self, entity: Any) -> Any:
        self._db.add(entity)
        try:
            safe_commit(self._db)
            self._db.refresh(entity)
        except SQLAlchemyError as e:
            logger.error("Failed to save entity", entity=type(entity).__name__, error=str(e))
            raise DatabaseError(f"save {type(entity).__name__.lower()}") from e
        return entity
