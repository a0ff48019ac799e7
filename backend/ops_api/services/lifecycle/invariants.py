"""
Scope and identity invariants shared by the validators and write services.

Pure functions over loaded entities, plus two lookups that only read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ops_api.models import EntityKind, Organization

from .registry import model_for


@dataclass
class ReferenceSplit:
    """Ids of a reference list split by what they resolve to."""

    live: list[int] = field(default_factory=list)
    tombstoned: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)

    @property
    def all_live(self) -> bool:
        return not self.tombstoned and not self.missing


def tenant_of(entity: Any) -> int:
    """Organization id scoping an entity; an organization scopes itself."""
    if isinstance(entity, Organization):
        return entity.id
    return entity.organization_id


def department_of(entity: Any) -> int | None:
    return getattr(entity, "department_id", None)


def same_tenant(a: Any, b: Any) -> bool:
    return tenant_of(a) == tenant_of(b)


def same_tenant_and_department(a: Any, b: Any) -> bool:
    return same_tenant(a, b) and department_of(a) == department_of(b)


def all_same_tenant(entities: Iterable[Any], organization_id: int) -> bool:
    return all(tenant_of(entity) == organization_id for entity in entities)


def out_of_scope(
    entities: Iterable[Any],
    organization_id: int,
    department_id: int | None = None,
) -> list[int]:
    """Ids of entities outside the organization (and department, when given)."""
    offenders = []
    for entity in entities:
        if tenant_of(entity) != organization_id:
            offenders.append(entity.id)
        elif department_id is not None and department_of(entity) != department_id:
            offenders.append(entity.id)
    return offenders


def partition_references(db: Session, ids: Iterable[int], kind: EntityKind) -> ReferenceSplit:
    """Split referenced ids into live, tombstoned and unknown."""
    wanted = list(dict.fromkeys(ids))
    split = ReferenceSplit()
    if not wanted:
        return split

    model = model_for(kind)
    rows = db.execute(
        select(model.id, model.is_deleted)
        .where(model.id.in_(wanted))
        .execution_options(include_tombstoned=True)
    ).all()
    state = {row.id: row.is_deleted for row in rows}

    for entity_id in wanted:
        if entity_id not in state:
            split.missing.append(entity_id)
        elif state[entity_id]:
            split.tombstoned.append(entity_id)
        else:
            split.live.append(entity_id)
    return split


def all_resolve(db: Session, ids: Iterable[int], kind: EntityKind) -> bool:
    """True when every id names a live entity of the given kind."""
    return partition_references(db, ids, kind).all_live
