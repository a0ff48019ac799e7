"""
Lifecycle endpoints: cascade delete, cascade restore and dry-run previews.

Refusals are not HTTP errors in the exception sense: the full CascadeResult
travels back with status 409 so callers can show every reason at once.
"""

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ops_api.models import EntityKind
from ops_api.services.lifecycle import (
    CascadeEngine,
    CascadeOptions,
    CascadeResult,
    ValidationResult,
    get_cascade_engine,
)
from ops_shared.config.logging import api_logger as logger
from ops_shared.infrastructure.db import get_db


router = APIRouter(prefix="/api/lifecycle", tags=["lifecycle"])


def get_engine(db: Session = Depends(get_db)) -> CascadeEngine:
    return get_cascade_engine(db)


def _respond(result: CascadeResult) -> JSONResponse:
    return JSONResponse(
        content=result.model_dump(mode="json"),
        status_code=status.HTTP_200_OK if result.success else status.HTTP_409_CONFLICT,
    )


@router.delete("/{kind}/{entity_id}", response_model=CascadeResult)
def cascade_delete(
    kind: EntityKind,
    entity_id: int,
    force: bool = Query(default=False),
    skip_validation: bool = Query(default=False),
    x_actor_id: int | None = Header(default=None),
    engine: CascadeEngine = Depends(get_engine),
) -> JSONResponse:
    """Tombstone an entity and everything it owns."""
    logger.info(
        "Cascade delete requested",
        kind=kind.value,
        entity_id=entity_id,
        actor_id=x_actor_id,
        force=force,
    )
    options = CascadeOptions(force=force, skip_validation=skip_validation)
    return _respond(engine.cascade_delete(kind, entity_id, x_actor_id, options))


@router.post("/{kind}/{entity_id}/restore", response_model=CascadeResult)
def cascade_restore(
    kind: EntityKind,
    entity_id: int,
    skip_validation: bool = Query(default=False),
    x_actor_id: int | None = Header(default=None),
    engine: CascadeEngine = Depends(get_engine),
) -> JSONResponse:
    """Restore an entity and its tombstoned descendants."""
    logger.info(
        "Cascade restore requested",
        kind=kind.value,
        entity_id=entity_id,
        actor_id=x_actor_id,
    )
    options = CascadeOptions(skip_validation=skip_validation)
    return _respond(engine.cascade_restore(kind, entity_id, options))


@router.get("/{kind}/{entity_id}/delete-preview", response_model=ValidationResult)
def delete_preview(
    kind: EntityKind,
    entity_id: int,
    engine: CascadeEngine = Depends(get_engine),
) -> ValidationResult:
    """Deletion rules for one entity, without changing anything."""
    return engine.validate_deletion(kind, entity_id)


@router.get("/{kind}/{entity_id}/restore-preview", response_model=ValidationResult)
def restore_preview(
    kind: EntityKind,
    entity_id: int,
    engine: CascadeEngine = Depends(get_engine),
) -> ValidationResult:
    """Restoration rules for one entity, without changing anything."""
    return engine.validate_restoration(kind, entity_id)
