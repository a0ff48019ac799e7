"""
Entity Registry: static catalog of the ownership graph.

For each EntityKind: its model class, owner kinds, scope fields and the
ordered child relations the cascade engine walks. Owned collections come
before polymorphic-parent leaves so that, on restore, everything a child
re-validates against is already live when the child is reached.

Nothing here is looked up by string name at call time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

from ops_api.models import (
    Attachment,
    Department,
    EntityKind,
    Material,
    Notification,
    Organization,
    ParentKind,
    Task,
    TaskActivity,
    TaskComment,
    Tombstonable,
    User,
    Vendor,
)


def _always(parent: Any) -> bool:
    return True


@dataclass(frozen=True)
class ChildRelation:
    """
    One owned collection of a parent kind.

    criteria builds the SQL condition selecting the parent's children;
    applies decides whether the relation exists for a given parent
    (routine tasks have no activities).
    """

    kind: EntityKind
    criteria: Callable[[Any], ColumnElement[bool]]
    applies: Callable[[Any], bool] = _always
    label: str = ""


@dataclass(frozen=True)
class EntityDescriptor:
    kind: EntityKind
    model: type[Tombstonable]
    owners: tuple[EntityKind, ...] = ()
    scope_fields: tuple[str, ...] = ()
    children: tuple[ChildRelation, ...] = field(default_factory=tuple)


def _polymorphic(model: Any, parent_kind: ParentKind) -> Callable[[Any], ColumnElement[bool]]:
    def criteria(parent: Any) -> ColumnElement[bool]:
        return and_(model.parent_kind == parent_kind, model.parent_id == parent.id)
    return criteria


def _about_task(task: Any) -> ColumnElement[bool]:
    return and_(Notification.entity_kind == EntityKind.TASK, Notification.entity_id == task.id)


REGISTRY: dict[EntityKind, EntityDescriptor] = {
    EntityKind.ORGANIZATION: EntityDescriptor(
        kind=EntityKind.ORGANIZATION,
        model=Organization,
        children=(
            ChildRelation(EntityKind.VENDOR, lambda org: Vendor.organization_id == org.id, label="vendors"),
            ChildRelation(EntityKind.DEPARTMENT, lambda org: Department.organization_id == org.id, label="departments"),
            ChildRelation(EntityKind.MATERIAL, lambda org: Material.organization_id == org.id, label="materials"),
            ChildRelation(EntityKind.USER, lambda org: User.organization_id == org.id, label="users"),
            ChildRelation(EntityKind.TASK, lambda org: Task.organization_id == org.id, label="tasks"),
            ChildRelation(EntityKind.NOTIFICATION, lambda org: Notification.organization_id == org.id, label="notifications"),
        ),
    ),
    EntityKind.DEPARTMENT: EntityDescriptor(
        kind=EntityKind.DEPARTMENT,
        model=Department,
        owners=(EntityKind.ORGANIZATION,),
        scope_fields=("organization_id",),
        children=(
            ChildRelation(EntityKind.MATERIAL, lambda dept: Material.department_id == dept.id, label="materials"),
            ChildRelation(EntityKind.USER, lambda dept: User.department_id == dept.id, label="users"),
            ChildRelation(EntityKind.TASK, lambda dept: Task.department_id == dept.id, label="tasks"),
            ChildRelation(EntityKind.NOTIFICATION, lambda dept: Notification.department_id == dept.id, label="notifications"),
        ),
    ),
    EntityKind.USER: EntityDescriptor(
        kind=EntityKind.USER,
        model=User,
        owners=(EntityKind.ORGANIZATION, EntityKind.DEPARTMENT),
        scope_fields=("organization_id", "department_id"),
        children=(
            ChildRelation(EntityKind.TASK, lambda user: Task.created_by_id == user.id, label="created tasks"),
            ChildRelation(EntityKind.TASK_ACTIVITY, lambda user: TaskActivity.created_by_id == user.id, label="created activities"),
            ChildRelation(EntityKind.TASK_COMMENT, lambda user: TaskComment.created_by_id == user.id, label="created comments"),
        ),
    ),
    EntityKind.TASK: EntityDescriptor(
        kind=EntityKind.TASK,
        model=Task,
        owners=(EntityKind.ORGANIZATION, EntityKind.DEPARTMENT, EntityKind.USER),
        scope_fields=("organization_id", "department_id"),
        children=(
            ChildRelation(
                EntityKind.TASK_ACTIVITY,
                lambda task: TaskActivity.task_id == task.id,
                applies=lambda task: task.supports_activities,
                label="activities",
            ),
            ChildRelation(EntityKind.TASK_COMMENT, _polymorphic(TaskComment, ParentKind.TASK), label="comments"),
            ChildRelation(EntityKind.ATTACHMENT, _polymorphic(Attachment, ParentKind.TASK), label="attachments"),
            ChildRelation(EntityKind.NOTIFICATION, _about_task, label="notifications"),
        ),
    ),
    EntityKind.TASK_ACTIVITY: EntityDescriptor(
        kind=EntityKind.TASK_ACTIVITY,
        model=TaskActivity,
        owners=(EntityKind.TASK, EntityKind.USER),
        scope_fields=("organization_id", "department_id"),
        children=(
            ChildRelation(EntityKind.TASK_COMMENT, _polymorphic(TaskComment, ParentKind.TASK_ACTIVITY), label="comments"),
            ChildRelation(EntityKind.ATTACHMENT, _polymorphic(Attachment, ParentKind.TASK_ACTIVITY), label="attachments"),
        ),
    ),
    EntityKind.TASK_COMMENT: EntityDescriptor(
        kind=EntityKind.TASK_COMMENT,
        model=TaskComment,
        owners=(EntityKind.TASK, EntityKind.TASK_ACTIVITY, EntityKind.TASK_COMMENT, EntityKind.USER),
        scope_fields=("organization_id", "department_id"),
        children=(
            ChildRelation(EntityKind.TASK_COMMENT, _polymorphic(TaskComment, ParentKind.TASK_COMMENT), label="replies"),
            ChildRelation(EntityKind.ATTACHMENT, _polymorphic(Attachment, ParentKind.TASK_COMMENT), label="attachments"),
        ),
    ),
    EntityKind.ATTACHMENT: EntityDescriptor(
        kind=EntityKind.ATTACHMENT,
        model=Attachment,
        owners=(EntityKind.TASK, EntityKind.TASK_ACTIVITY, EntityKind.TASK_COMMENT),
        scope_fields=("organization_id", "department_id"),
    ),
    EntityKind.MATERIAL: EntityDescriptor(
        kind=EntityKind.MATERIAL,
        model=Material,
        owners=(EntityKind.ORGANIZATION, EntityKind.DEPARTMENT),
        scope_fields=("organization_id", "department_id"),
    ),
    EntityKind.VENDOR: EntityDescriptor(
        kind=EntityKind.VENDOR,
        model=Vendor,
        owners=(EntityKind.ORGANIZATION,),
        scope_fields=("organization_id",),
    ),
    EntityKind.NOTIFICATION: EntityDescriptor(
        kind=EntityKind.NOTIFICATION,
        model=Notification,
        owners=(EntityKind.ORGANIZATION, EntityKind.DEPARTMENT),
        scope_fields=("organization_id", "department_id"),
    ),
}

PARENT_MODELS: dict[ParentKind, type[Tombstonable]] = {
    ParentKind.TASK: Task,
    ParentKind.TASK_ACTIVITY: TaskActivity,
    ParentKind.TASK_COMMENT: TaskComment,
}

_KIND_BY_MODEL: dict[type, EntityKind] = {d.model: k for k, d in REGISTRY.items()}


def descriptor(kind: EntityKind) -> EntityDescriptor:
    return REGISTRY[kind]


def model_for(kind: EntityKind) -> type[Tombstonable]:
    return REGISTRY[kind].model


def children_of(kind: EntityKind) -> tuple[ChildRelation, ...]:
    return REGISTRY[kind].children


def kind_of(entity: Any) -> EntityKind:
    """Resolve an entity's kind; task sub-kinds resolve to TASK."""
    for cls in type(entity).__mro__:
        kind = _KIND_BY_MODEL.get(cls)
        if kind is not None:
            return kind
    raise TypeError(f"{type(entity).__name__} is not a registered entity kind")


def parent_kind_of(entity: Any) -> ParentKind:
    """Tag an entity as a polymorphic parent; only tasks, activities and comments qualify."""
    kind = kind_of(entity)
    try:
        return ParentKind(kind.value)
    except ValueError:
        raise TypeError(f"{kind.label} cannot own comments or attachments") from None
