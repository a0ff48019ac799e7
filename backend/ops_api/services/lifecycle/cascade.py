"""
Cascade Engine: lifecycle transitions over the ownership graph.

Deleting an owner tombstones everything it owns, transitively, in registry
order. Restoring an owner brings its tombstoned descendants back, each one
re-validated against ancestors that were restored a step earlier in the
same transaction. A node refused on one path (a comment reached through its
author before its thread) is tried again when another path of the same call
reaches it.

Usage:
    from ops_api.services.lifecycle import CascadeEngine, CascadeOptions

    engine = get_cascade_engine(db)
    result = engine.cascade_delete(EntityKind.DEPARTMENT, dept_id, actor_id=user_id)
    if not result.success:
        ...  # result.errors explains the refusal

A call never raises for a failed rule: errors and warnings come back in the
CascadeResult. Database faults roll the whole call back and propagate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from ops_api.models import EntityKind
from ops_api.services.crud.soft_delete import restore_entity, soft_delete
from ops_shared.config.constants import ErrorCodes
from ops_shared.config.logging import cascade_scope, lifecycle_logger as logger
from ops_shared.config.settings import Settings, settings as default_settings
from ops_shared.infrastructure.db import transactional

from .registry import children_of
from .results import CascadeOptions, CascadeResult, ErrorItem, ValidationResult
from .store import LifecycleStore
from .validators import validator_for


@dataclass
class _CascadeRun:
    """
    Accumulator shared by every branch of one cascade call.

    A node is settled once it has passed its gates; it is never processed
    twice. A node blocked on one path stays open: another path may reach it
    after an ancestor has been restored or deleted, and the verdict from the
    latest attempt is the one reported.
    """

    settled: set[tuple[EntityKind, int]] = field(default_factory=set)
    affected: int = 0
    warnings: list[ErrorItem] = field(default_factory=list)
    errors: list[ErrorItem] = field(default_factory=list)
    verdicts: dict[tuple[EntityKind, int], tuple[list[ErrorItem], list[ErrorItem]]] = field(
        default_factory=dict
    )

    def is_settled(self, kind: EntityKind, entity_id: int) -> bool:
        return (kind, entity_id) in self.settled

    def settle(self, kind: EntityKind, entity_id: int) -> None:
        self.settled.add((kind, entity_id))

    def record(
        self,
        kind: EntityKind,
        entity_id: int,
        *,
        warnings: list[ErrorItem] | None = None,
        errors: list[ErrorItem] | None = None,
    ) -> None:
        self.verdicts[(kind, entity_id)] = (list(warnings or []), list(errors or []))

    def result(self, success: bool) -> CascadeResult:
        warnings = list(self.warnings)
        errors = list(self.errors)
        for node_warnings, node_errors in self.verdicts.values():
            warnings.extend(node_warnings)
            errors.extend(node_errors)
        return CascadeResult(
            success=success,
            affected_count=self.affected,
            warnings=warnings,
            errors=errors,
        )


def _not_found(kind: EntityKind, entity_id: int) -> ErrorItem:
    return ErrorItem(
        code=ErrorCodes.not_found(kind.code_prefix),
        message=f"{kind.label} {entity_id} does not exist",
        entity_kind=kind.value,
        entity_id=entity_id,
    )


def _too_deep(kind: EntityKind, entity_id: int, depth: int, max_depth: int) -> ErrorItem:
    return ErrorItem(
        code=ErrorCodes.MAX_DEPTH_EXCEEDED,
        message=f"Cascade depth {depth} reached the limit of {max_depth}",
        entity_kind=kind.value,
        entity_id=entity_id,
        depth=depth,
    )


class CascadeEngine:
    """
    Runs cascade_delete / cascade_restore over a LifecycleStore.

    Each public cascade call is one transaction: committed when it returns,
    rolled back when anything raises.
    """

    def __init__(self, store: LifecycleStore, config: Settings | None = None):
        self._store = store
        self._settings = config or default_settings

    @property
    def store(self) -> LifecycleStore:
        return self._store

    @property
    def session(self) -> Session:
        return self._store.session

    # =========================================================================
    # Dry-run previews
    # =========================================================================

    def validate_deletion(self, kind: EntityKind, entity_id: int) -> ValidationResult:
        """Run the deletion rules for one entity without changing anything."""
        entity = self._store.load(kind, entity_id)
        if entity is None:
            return ValidationResult(errors=[_not_found(kind, entity_id)])
        return validator_for(entity, self._store, self._settings).validate_deletion(entity)

    def validate_restoration(self, kind: EntityKind, entity_id: int) -> ValidationResult:
        """Run the restoration rules for one entity without changing anything."""
        entity = self._store.load(kind, entity_id)
        if entity is None:
            return ValidationResult(errors=[_not_found(kind, entity_id)])
        return validator_for(entity, self._store, self._settings).validate_restoration(entity)

    # =========================================================================
    # Delete
    # =========================================================================

    def cascade_delete(
        self,
        kind: EntityKind,
        root_id: int,
        actor_id: int | None,
        options: CascadeOptions | None = None,
    ) -> CascadeResult:
        """
        Tombstone an entity and everything it owns.

        Args:
            kind: Kind of the root entity
            root_id: ID of the root entity
            actor_id: User recorded as deleted_by on every tombstoned row
            options: skip_validation, force, starting depth and max_depth

        Returns:
            CascadeResult; success reflects the root transition only
        """
        options = options or CascadeOptions()
        run = _CascadeRun()

        with cascade_scope("delete", kind.value, root_id):
            with transactional(self.session):
                root = self._store.load(kind, root_id)
                if root is None:
                    run.errors.append(_not_found(kind, root_id))
                    success = False
                elif root.is_deleted:
                    run.warnings.append(ErrorItem(
                        code=ErrorCodes.ALREADY_DELETED,
                        message=f"{kind.label} {root_id} is already deleted",
                        entity_kind=kind.value,
                        entity_id=root_id,
                    ))
                    success = True
                else:
                    success = self._delete_branch(root, kind, actor_id, options, options.depth, run)

            result = run.result(success)
            logger.info(
                "Cascade delete finished",
                actor_id=actor_id,
                success=success,
                affected=run.affected,
                errors=len(result.errors),
                warnings=len(result.warnings),
                forced=options.force,
            )
        return result

    def _delete_branch(
        self,
        entity: Any,
        kind: EntityKind,
        actor_id: int | None,
        options: CascadeOptions,
        depth: int,
        run: _CascadeRun,
    ) -> bool:
        if run.is_settled(kind, entity.id):
            return True

        if depth >= options.max_depth:
            run.record(kind, entity.id, errors=[_too_deep(kind, entity.id, depth, options.max_depth)])
            return False

        if not options.skip_validation:
            verdict = validator_for(entity, self._store, self._settings).validate_deletion(entity)
            run.record(kind, entity.id, warnings=verdict.warnings, errors=verdict.errors)
            if verdict.errors and not options.force:
                logger.debug(
                    "Cascade delete branch blocked",
                    kind=kind.value,
                    entity_id=entity.id,
                    codes=verdict.error_codes(),
                )
                return False

        run.settle(kind, entity.id)
        if soft_delete(self.session, entity, actor_id).changed:
            run.affected += 1

        if kind is EntityKind.USER:
            detached = self._store.detach_user(entity.id)
            if any(detached.values()):
                logger.debug("User detached from link lists", user_id=entity.id, **detached)

        for relation in children_of(kind):
            if not relation.applies(entity):
                continue
            for child in self._store.children(entity, relation, tombstoned=False):
                self._delete_branch(child, relation.kind, actor_id, options, depth + 1, run)

        return True

    # =========================================================================
    # Restore
    # =========================================================================

    def cascade_restore(
        self,
        kind: EntityKind,
        root_id: int,
        options: CascadeOptions | None = None,
    ) -> CascadeResult:
        """
        Bring an entity and its tombstoned descendants back.

        Restore errors always block their branch: force is ignored.
        """
        options = options or CascadeOptions()
        run = _CascadeRun()

        with cascade_scope("restore", kind.value, root_id):
            with transactional(self.session):
                root = self._store.load(kind, root_id)
                if root is None:
                    run.errors.append(_not_found(kind, root_id))
                    success = False
                elif root.is_live:
                    run.warnings.append(ErrorItem(
                        code=ErrorCodes.NOT_DELETED,
                        message=f"{kind.label} {root_id} is not deleted",
                        entity_kind=kind.value,
                        entity_id=root_id,
                    ))
                    success = True
                else:
                    success = self._restore_branch(root, kind, options, options.depth, run)

            result = run.result(success)
            logger.info(
                "Cascade restore finished",
                success=success,
                affected=run.affected,
                errors=len(result.errors),
                warnings=len(result.warnings),
            )
        return result

    def _restore_branch(
        self,
        entity: Any,
        kind: EntityKind,
        options: CascadeOptions,
        depth: int,
        run: _CascadeRun,
    ) -> bool:
        if run.is_settled(kind, entity.id):
            return True

        if depth >= options.max_depth:
            run.record(kind, entity.id, errors=[_too_deep(kind, entity.id, depth, options.max_depth)])
            return False

        if not options.skip_validation:
            verdict = validator_for(entity, self._store, self._settings).validate_restoration(entity)
            run.record(kind, entity.id, warnings=verdict.warnings, errors=verdict.errors)
            # A node reached through its creator before its owner came back
            # is retried when the owner's branch reaches it.
            if verdict.errors:
                return False

        run.settle(kind, entity.id)
        if restore_entity(self.session, entity).changed:
            run.affected += 1

        for relation in children_of(kind):
            if not relation.applies(entity):
                continue
            for child in self._store.children(entity, relation, tombstoned=True):
                self._restore_branch(child, relation.kind, options, depth + 1, run)

        return True


def get_cascade_engine(db: Session, config: Settings | None = None) -> CascadeEngine:
    """Build an engine over a fresh store for this session."""
    return CascadeEngine(LifecycleStore(db), config)
