"""
Typed store handles for the lifecycle engine.

LifecycleStore is built once per session and handed to the validators and
the cascade engine, which never look repositories or models up by name.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import Table, delete, func, select
from sqlalchemy.orm import Session

from ops_api.models import (
    ActivityMaterial,
    Attachment,
    Department,
    EntityKind,
    Material,
    Notification,
    Organization,
    ParentKind,
    RoutineTaskMaterial,
    Task,
    TaskActivity,
    TaskComment,
    User,
    Vendor,
    comment_mention,
    notification_recipient,
    task_assignee,
    task_watcher,
)
from ops_api.services.crud.repository import TombstoneRepository

from .registry import ChildRelation

# Link tables holding user ids, keyed by the name used in reports
USER_LINK_TABLES: dict[str, Table] = {
    "watchers": task_watcher,
    "assignees": task_assignee,
    "mentions": comment_mention,
    "recipients": notification_recipient,
}


class LifecycleStore:
    """Repository bundle over one session, one typed handle per entity kind."""

    def __init__(self, session: Session):
        self.session = session
        self.organizations: TombstoneRepository[Organization] = TombstoneRepository(Organization, session)
        self.departments: TombstoneRepository[Department] = TombstoneRepository(Department, session)
        self.users: TombstoneRepository[User] = TombstoneRepository(User, session)
        self.tasks: TombstoneRepository[Task] = TombstoneRepository(Task, session)
        self.activities: TombstoneRepository[TaskActivity] = TombstoneRepository(TaskActivity, session)
        self.comments: TombstoneRepository[TaskComment] = TombstoneRepository(TaskComment, session)
        self.attachments: TombstoneRepository[Attachment] = TombstoneRepository(Attachment, session)
        self.materials: TombstoneRepository[Material] = TombstoneRepository(Material, session)
        self.vendors: TombstoneRepository[Vendor] = TombstoneRepository(Vendor, session)
        self.notifications: TombstoneRepository[Notification] = TombstoneRepository(Notification, session)

        self._by_kind: dict[EntityKind, TombstoneRepository[Any]] = {
            EntityKind.ORGANIZATION: self.organizations,
            EntityKind.DEPARTMENT: self.departments,
            EntityKind.USER: self.users,
            EntityKind.TASK: self.tasks,
            EntityKind.TASK_ACTIVITY: self.activities,
            EntityKind.TASK_COMMENT: self.comments,
            EntityKind.ATTACHMENT: self.attachments,
            EntityKind.MATERIAL: self.materials,
            EntityKind.VENDOR: self.vendors,
            EntityKind.NOTIFICATION: self.notifications,
        }
        self._by_parent_kind: dict[ParentKind, TombstoneRepository[Any]] = {
            ParentKind.TASK: self.tasks,
            ParentKind.TASK_ACTIVITY: self.activities,
            ParentKind.TASK_COMMENT: self.comments,
        }

    def repository(self, kind: EntityKind) -> TombstoneRepository[Any]:
        return self._by_kind[kind]

    def load(self, kind: EntityKind, entity_id: int | None, *, include_tombstoned: bool = True) -> Any | None:
        """Load an entity of any state (by default) or None."""
        if entity_id is None:
            return None
        return self._by_kind[kind].find_by_id(entity_id, include_tombstoned=include_tombstoned)

    def load_parent(self, parent_kind: ParentKind, parent_id: int) -> Any | None:
        return self._by_parent_kind[parent_kind].find_by_id(parent_id, include_tombstoned=True)

    def children(self, parent: Any, relation: ChildRelation, *, tombstoned: bool) -> Sequence[Any]:
        """Children of parent along relation: live ones, or tombstoned ones."""
        repo = self._by_kind[relation.kind]
        criteria = relation.criteria(parent)
        if tombstoned:
            return repo.find_where(criteria, only_tombstoned=True)
        return repo.find_where(criteria)

    def count_children(self, parent: Any, relation: ChildRelation, *, include_tombstoned: bool = True) -> int:
        repo = self._by_kind[relation.kind]
        return repo.count(relation.criteria(parent), include_tombstoned=include_tombstoned)

    # =========================================================================
    # Associative links
    # =========================================================================

    def linked_user_ids(self, table: Table, owner_column: str, owner_id: int) -> list[int]:
        """User ids stored in a link table for one owner row, whatever their state."""
        rows = self.session.execute(
            select(table.c.user_id)
            .where(table.c[owner_column] == owner_id)
            .order_by(table.c.user_id)
        )
        return [row.user_id for row in rows]

    def watcher_ids(self, task: Task) -> list[int]:
        return self.linked_user_ids(task_watcher, "task_id", task.id)

    def assignee_ids(self, task: Task) -> list[int]:
        return self.linked_user_ids(task_assignee, "task_id", task.id)

    def mention_ids(self, comment: TaskComment) -> list[int]:
        return self.linked_user_ids(comment_mention, "comment_id", comment.id)

    def recipient_ids(self, notification: Notification) -> list[int]:
        return self.linked_user_ids(notification_recipient, "notification_id", notification.id)

    def routine_material_ids(self, task: Task) -> list[int]:
        rows = self.session.execute(
            select(RoutineTaskMaterial.material_id).where(RoutineTaskMaterial.task_id == task.id)
        )
        return [row.material_id for row in rows]

    def activity_material_ids(self, activity: TaskActivity) -> list[int]:
        rows = self.session.execute(
            select(ActivityMaterial.material_id).where(ActivityMaterial.activity_id == activity.id)
        )
        return [row.material_id for row in rows]

    def count_user_links(self, user_id: int) -> dict[str, int]:
        counts = {}
        for name, table in USER_LINK_TABLES.items():
            counts[name] = self.session.scalar(
                select(func.count()).select_from(table).where(table.c.user_id == user_id)
            ) or 0
        return counts

    def detach_user(self, user_id: int) -> dict[str, int]:
        """
        Remove a user from every watcher, assignee, mention and recipient list.

        Reference removal only: the referencing rows stay as they are and
        nothing is re-added on restore.
        """
        removed = {}
        for name, table in USER_LINK_TABLES.items():
            result = self.session.execute(delete(table).where(table.c.user_id == user_id))
            removed[name] = result.rowcount or 0
        return removed

    def material_usage(self, material_id: int) -> int:
        """Live routine tasks and activities that use the material."""
        routine = self.session.scalar(
            select(func.count(RoutineTaskMaterial.id))
            .join(Task, Task.id == RoutineTaskMaterial.task_id)
            .where(RoutineTaskMaterial.material_id == material_id, Task.is_deleted.is_(False))
            .execution_options(include_tombstoned=True)
        ) or 0
        activity = self.session.scalar(
            select(func.count(ActivityMaterial.id))
            .join(TaskActivity, TaskActivity.id == ActivityMaterial.activity_id)
            .where(ActivityMaterial.material_id == material_id, TaskActivity.is_deleted.is_(False))
            .execution_options(include_tombstoned=True)
        ) or 0
        return routine + activity
