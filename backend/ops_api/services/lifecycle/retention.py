"""
Retention reaper: physical purge of long-tombstoned rows.

Tombstones older than their kind's retention window are removed for good.
Kinds are visited leaf first so that a parent whose children were purged
earlier in the run can go in the same run. A candidate that still has
dependents, in any state, is skipped and picked up by a later run.

Organizations are never purged.

Usage:
    reaper = RetentionReaper(db)
    report = reaper.purge_expired()               # commit
    preview = reaper.purge_expired(dry_run=True)  # count only
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

from pydantic import BaseModel, Field
from sqlalchemy import Table, delete, func, select
from sqlalchemy.orm import Session

from ops_api.models import (
    ALLOW_PURGE,
    ActivityMaterial,
    Attachment,
    EntityKind,
    Material,
    ProjectTask,
    RoutineTaskMaterial,
    TaskComment,
    Vendor,
    as_utc,
    comment_mention,
    notification_recipient,
    task_assignee,
    task_watcher,
    utcnow,
)
from ops_shared.config.logging import retention_logger as logger
from ops_shared.config.settings import Settings, settings as default_settings
from ops_shared.infrastructure.db import transactional

from .registry import children_of
from .store import LifecycleStore

# Leaf first: everything a kind may own is visited before the kind itself
PURGE_ORDER: tuple[EntityKind, ...] = (
    EntityKind.NOTIFICATION,
    EntityKind.ATTACHMENT,
    EntityKind.TASK_COMMENT,
    EntityKind.TASK_ACTIVITY,
    EntityKind.TASK,
    EntityKind.MATERIAL,
    EntityKind.VENDOR,
    EntityKind.USER,
    EntityKind.DEPARTMENT,
)


def retention_windows(config: Settings) -> dict[EntityKind, timedelta]:
    return {
        EntityKind.NOTIFICATION: timedelta(days=config.retention_notification_days),
        EntityKind.ATTACHMENT: timedelta(days=config.retention_attachment_days),
        EntityKind.TASK_COMMENT: timedelta(days=config.retention_comment_days),
        EntityKind.TASK_ACTIVITY: timedelta(days=config.retention_activity_days),
        EntityKind.TASK: timedelta(days=config.retention_task_days),
        EntityKind.MATERIAL: timedelta(days=config.retention_material_days),
        EntityKind.VENDOR: timedelta(days=config.retention_vendor_days),
        EntityKind.USER: timedelta(days=config.retention_user_days),
        EntityKind.DEPARTMENT: timedelta(days=config.retention_department_days),
    }


class PurgeReport(BaseModel):
    """Counts per kind value. In a dry run, purged counts what would go."""

    dry_run: bool = False
    purged: dict[str, int] = Field(default_factory=dict)
    skipped: dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.purged.values())


class RetentionReaper:
    """Purges expired tombstones kind by kind."""

    def __init__(self, db: Session, config: Settings | None = None):
        self._db = db
        self._store = LifecycleStore(db)
        self._settings = config or default_settings
        self._windows = retention_windows(self._settings)
        self._blockers: dict[EntityKind, Callable[[Any], int]] = {
            EntityKind.MATERIAL: self._material_blockers,
            EntityKind.VENDOR: self._vendor_blockers,
            EntityKind.USER: self._user_blockers,
        }
        self._unlinkers: dict[EntityKind, Callable[[Any], None]] = {
            EntityKind.NOTIFICATION: lambda n: self._unlink(notification_recipient, "notification_id", n.id),
            EntityKind.TASK_COMMENT: lambda c: self._unlink(comment_mention, "comment_id", c.id),
            EntityKind.TASK_ACTIVITY: lambda a: self._unlink(ActivityMaterial.__table__, "activity_id", a.id),
            EntityKind.TASK: self._unlink_task,
            EntityKind.USER: lambda u: self._store.detach_user(u.id),
        }

    def purge_expired(self, now: datetime | None = None, dry_run: bool = False) -> PurgeReport:
        """
        Purge every tombstone older than its kind's retention window.

        Args:
            now: Reference time (defaults to the current UTC time)
            dry_run: Count candidates without removing anything

        Returns:
            PurgeReport with purged and skipped counts per kind
        """
        now = as_utc(now) or utcnow()
        report = PurgeReport(dry_run=dry_run)

        with transactional(self._db, commit=not dry_run):
            for kind in PURGE_ORDER:
                purged, skipped = self._purge_kind(kind, now - self._windows[kind], dry_run)
                report.purged[kind.value] = purged
                report.skipped[kind.value] = skipped

        logger.info(
            "Retention purge finished",
            dry_run=dry_run,
            total=report.total,
            purged={k: v for k, v in report.purged.items() if v},
            skipped={k: v for k, v in report.skipped.items() if v},
        )
        return report

    def _purge_kind(self, kind: EntityKind, cutoff: datetime, dry_run: bool) -> tuple[int, int]:
        repo = self._store.repository(kind)
        model = repo.model
        # Deepest replies first so a thread can go in one run
        order_by = TaskComment.depth.desc() if kind is EntityKind.TASK_COMMENT else model.id
        candidates = repo.find_where(
            model.deleted_at.is_not(None),
            model.deleted_at < cutoff,
            only_tombstoned=True,
            order_by=order_by,
        )

        purged = skipped = 0
        for entity in candidates:
            dependents = self._dependents(kind, entity)
            if dependents:
                skipped += 1
                logger.debug(
                    "Purge skipped: dependents remain",
                    kind=kind.value,
                    entity_id=entity.id,
                    dependents=dependents,
                )
                continue
            if not dry_run:
                self._purge(kind, entity)
            purged += 1
        return purged, skipped

    def _dependents(self, kind: EntityKind, entity: Any) -> int:
        owned = sum(
            self._store.count_children(entity, relation, include_tombstoned=True)
            for relation in children_of(kind)
        )
        blocker = self._blockers.get(kind)
        return owned + (blocker(entity) if blocker else 0)

    def _purge(self, kind: EntityKind, entity: Any) -> None:
        unlink = self._unlinkers.get(kind)
        if unlink is not None:
            unlink(entity)
        model = self._store.repository(kind).model
        entity_id = entity.id
        self._db.expunge(entity)
        self._db.execute(
            delete(model)
            .where(model.id == entity_id)
            .execution_options(**{ALLOW_PURGE: True, "synchronize_session": False})
        )

    # =========================================================================
    # Blocking foreign references
    # =========================================================================

    def _count(self, column: Any, value: int) -> int:
        return self._db.scalar(
            select(func.count(column)).where(column == value)
        ) or 0

    def _material_blockers(self, material: Material) -> int:
        return (
            self._count(RoutineTaskMaterial.material_id, material.id)
            + self._count(ActivityMaterial.material_id, material.id)
        )

    def _vendor_blockers(self, vendor: Vendor) -> int:
        return self._store.tasks.count(ProjectTask.vendor_id == vendor.id, include_tombstoned=True)

    def _user_blockers(self, user: Any) -> int:
        return (
            self._store.attachments.count(Attachment.uploaded_by_id == user.id, include_tombstoned=True)
            + self._store.materials.count(Material.created_by_id == user.id, include_tombstoned=True)
            + self._store.vendors.count(Vendor.created_by_id == user.id, include_tombstoned=True)
        )

    # =========================================================================
    # Link rows removed with their owner
    # =========================================================================

    def _unlink(self, table: Table, column: str, owner_id: int) -> None:
        self._db.execute(delete(table).where(table.c[column] == owner_id))

    def _unlink_task(self, task: Any) -> None:
        self._unlink(task_watcher, "task_id", task.id)
        self._unlink(task_assignee, "task_id", task.id)
        self._unlink(RoutineTaskMaterial.__table__, "task_id", task.id)


__all__ = ["RetentionReaper", "PurgeReport", "PURGE_ORDER", "retention_windows"]
