"""
Per-kind precondition validators.

validator_for() dispatches on the entity's kind, and for tasks on the
sub-kind discriminator. The table is static; nothing is resolved by name.
"""

from __future__ import annotations

from typing import Any

from ops_api.models import EntityKind
from ops_shared.config.constants import TaskType
from ops_shared.config.settings import Settings

from ..registry import kind_of
from ..store import LifecycleStore
from .activity import TaskActivityValidator
from .base import BaseValidator, ValidationReport
from .comment import AttachmentValidator, TaskCommentValidator
from .inventory import MaterialValidator, NotificationValidator, VendorValidator
from .organization import DepartmentValidator, OrganizationValidator
from .task import AssignedTaskValidator, ProjectTaskValidator, RoutineTaskValidator, TaskValidator
from .user import UserValidator

VALIDATORS: dict[EntityKind, type[BaseValidator]] = {
    EntityKind.ORGANIZATION: OrganizationValidator,
    EntityKind.DEPARTMENT: DepartmentValidator,
    EntityKind.USER: UserValidator,
    EntityKind.TASK: TaskValidator,
    EntityKind.TASK_ACTIVITY: TaskActivityValidator,
    EntityKind.TASK_COMMENT: TaskCommentValidator,
    EntityKind.ATTACHMENT: AttachmentValidator,
    EntityKind.MATERIAL: MaterialValidator,
    EntityKind.VENDOR: VendorValidator,
    EntityKind.NOTIFICATION: NotificationValidator,
}

TASK_VALIDATORS: dict[str, type[TaskValidator]] = {
    TaskType.PROJECT: ProjectTaskValidator,
    TaskType.ROUTINE: RoutineTaskValidator,
    TaskType.ASSIGNED: AssignedTaskValidator,
}


def validator_class_for(entity: Any) -> type[BaseValidator]:
    kind = kind_of(entity)
    if kind is EntityKind.TASK:
        return TASK_VALIDATORS.get(entity.task_type, TaskValidator)
    return VALIDATORS[kind]


def validator_for(entity: Any, store: LifecycleStore, config: Settings | None = None) -> BaseValidator:
    """Build the validator for an entity over the given store."""
    return validator_class_for(entity)(store, config)


__all__ = [
    "BaseValidator",
    "ValidationReport",
    "VALIDATORS",
    "TASK_VALIDATORS",
    "validator_class_for",
    "validator_for",
    "OrganizationValidator",
    "DepartmentValidator",
    "UserValidator",
    "TaskValidator",
    "ProjectTaskValidator",
    "RoutineTaskValidator",
    "AssignedTaskValidator",
    "TaskActivityValidator",
    "TaskCommentValidator",
    "AttachmentValidator",
    "MaterialValidator",
    "VendorValidator",
    "NotificationValidator",
]
