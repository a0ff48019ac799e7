"""
Precondition validator base.

A validator answers two read-only questions about one entity: may it be
tombstoned, and may it be brought back. Answers are ValidationResult values
holding blocking errors and advisory warnings; nothing here raises for a
failed rule and nothing here writes.

Subclasses implement check_deletion / check_restoration and use the shared
helpers for the rules every kind repeats: owner liveness, creator liveness,
uniqueness among live rows, and scope of associative references.
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterable, Sequence

from sqlalchemy import func

from ops_api.models import EntityKind
from ops_shared.config.constants import ErrorCodes
from ops_shared.config.settings import Settings, settings as default_settings

from ..invariants import ReferenceSplit, out_of_scope, partition_references
from ..results import ErrorItem, ValidationResult
from ..store import LifecycleStore


class ValidationReport:
    """Collects errors and warnings for one entity, stamping its kind and id."""

    def __init__(self, kind: EntityKind, entity: Any):
        self.errors: list[ErrorItem] = []
        self.warnings: list[ErrorItem] = []
        self._context = {"entity_kind": kind.value, "entity_id": entity.id}

    def error(self, code: str, message: str, field: str | None = None, **metadata: Any) -> None:
        self.errors.append(ErrorItem(code=code, message=message, field=field, **self._context, **metadata))

    def warning(self, code: str, message: str, field: str | None = None, **metadata: Any) -> None:
        self.warnings.append(ErrorItem(code=code, message=message, field=field, **self._context, **metadata))

    def result(self) -> ValidationResult:
        return ValidationResult(errors=list(self.errors), warnings=list(self.warnings))


class BaseValidator:
    """Rule evaluator for one entity kind."""

    kind: ClassVar[EntityKind]

    def __init__(self, store: LifecycleStore, config: Settings | None = None):
        self._store = store
        self._settings = config or default_settings

    @property
    def store(self) -> LifecycleStore:
        return self._store

    def validate_deletion(self, entity: Any) -> ValidationResult:
        report = ValidationReport(self.kind, entity)
        self.check_deletion(entity, report)
        return report.result()

    def validate_restoration(self, entity: Any) -> ValidationResult:
        report = ValidationReport(self.kind, entity)
        self.check_restoration(entity, report)
        return report.result()

    def check_deletion(self, entity: Any, report: ValidationReport) -> None:
        """Rules for tombstoning. Default: none."""

    def check_restoration(self, entity: Any, report: ValidationReport) -> None:
        """Rules for restoring. Default: none."""

    # =========================================================================
    # Owner liveness
    # =========================================================================

    def require_owner(
        self,
        report: ValidationReport,
        kind: EntityKind,
        owner_id: int | None,
        *,
        field: str,
        prefix: str | None = None,
    ) -> Any | None:
        """
        Hard error when an owner is missing or tombstoned.

        Returns the owner (any state) so callers can run further checks on it.
        """
        prefix = prefix or kind.code_prefix
        owner = self._store.load(kind, owner_id)
        if owner is None:
            report.error(
                ErrorCodes.not_found(prefix),
                f"{kind.label} {owner_id} does not exist",
                field=field,
                owner_id=owner_id,
            )
        elif owner.is_deleted:
            report.error(
                ErrorCodes.deleted(prefix),
                f"{kind.label} {owner_id} is deleted; restore it first",
                field=field,
                owner_id=owner_id,
            )
        return owner

    def require_scope_owners(self, entity: Any, report: ValidationReport) -> tuple[Any | None, Any | None]:
        """Organization, and department when the kind has one, must be live."""
        organization = self.require_owner(
            report, EntityKind.ORGANIZATION, entity.organization_id, field="organization_id"
        )
        department = None
        if hasattr(entity, "department_id"):
            department = self.require_owner(
                report, EntityKind.DEPARTMENT, entity.department_id, field="department_id"
            )
        return organization, department

    def require_creator(self, entity: Any, report: ValidationReport, *, blocking: bool) -> None:
        """
        The creating user must be live.

        blocking=True where the creator owns the entity (it cascades from the
        user); otherwise the reference is associative and only warned about.
        """
        creator_id = getattr(entity, "created_by_id", None)
        if creator_id is None:
            return
        creator = self._store.load(EntityKind.USER, creator_id)
        emit = report.error if blocking else report.warning
        if creator is None:
            emit(
                ErrorCodes.CREATED_BY_NOT_FOUND if blocking else ErrorCodes.CREATED_BY_DELETED,
                f"Creator {creator_id} does not exist",
                field="created_by_id",
                user_id=creator_id,
            )
        elif creator.is_deleted:
            emit(
                ErrorCodes.CREATED_BY_DELETED,
                f"Creator {creator_id} is deleted",
                field="created_by_id",
                user_id=creator_id,
            )

    # =========================================================================
    # Uniqueness among live rows
    # =========================================================================

    def check_unique(
        self,
        entity: Any,
        report: ValidationReport,
        fields: Sequence[tuple[str, str]],
        *scope: Any,
    ) -> None:
        """
        Hard error for every (attribute, code) pair whose value is already
        used by another live row of the same kind within scope.
        Comparison is case-insensitive for strings.
        """
        repo = self._store.repository(self.kind)
        model = repo.model
        for attr, code in fields:
            value = getattr(entity, attr, None)
            if value is None or value == "":
                continue
            column = getattr(model, attr)
            if isinstance(value, str):
                condition = func.lower(column) == value.lower()
            else:
                condition = column == value
            clashes = repo.count(condition, model.id != entity.id, *scope)
            if clashes:
                report.error(
                    code,
                    f"Another live {self.kind.label} already uses {attr} '{value}'",
                    field=attr,
                    value=value,
                )

    # =========================================================================
    # Associative references
    # =========================================================================

    def split_references(self, ids: Iterable[int], kind: EntityKind) -> ReferenceSplit:
        return partition_references(self._store.session, ids, kind)

    def check_references(
        self,
        report: ValidationReport,
        ids: Iterable[int],
        kind: EntityKind,
        *,
        field: str,
        deleted_code: str,
        scope_code: str,
        organization_id: int,
        department_id: int | None = None,
    ) -> ReferenceSplit:
        """
        Dangling references (tombstoned or purged targets) are warnings: they
        drop out of reads. Live targets outside the scope are hard errors.
        """
        split = self.split_references(ids, kind)
        dangling = split.tombstoned + split.missing
        if dangling:
            report.warning(
                deleted_code,
                f"{len(dangling)} referenced {kind.label} record(s) are deleted and will be dropped",
                field=field,
                ids=dangling,
            )
        if split.live:
            live = self._store.repository(kind).find_many(split.live)
            offenders = out_of_scope(live, organization_id, department_id)
            if offenders:
                report.error(
                    scope_code,
                    f"{len(offenders)} referenced {kind.label} record(s) belong to another "
                    f"{'organization or department' if department_id is not None else 'organization'}",
                    field=field,
                    ids=offenders,
                )
        return split
