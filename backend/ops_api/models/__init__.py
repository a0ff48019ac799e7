"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, TimestampMixin, timestamp helpers
- tombstone: Tombstonable mixin and the session-wide tombstone hooks
- kinds: EntityKind, ParentKind enumerations
- organization: Organization, Department
- user: User
- task: Task, ProjectTask, RoutineTask, AssignedTask, RoutineTaskMaterial
- activity: TaskActivity, ActivityMaterial
- comment: TaskComment
- attachment: Attachment
- inventory: Material, Vendor
- notification: Notification
"""

# Base classes
from .base import Base, TimestampMixin, as_utc, utcnow
from .tombstone import Tombstonable, INCLUDE_TOMBSTONED, ONLY_TOMBSTONED, ALLOW_PURGE
from .kinds import EntityKind, ParentKind

# Tenant structure
from .organization import Organization, Department
from .user import User

# Tasks
from .task import (
    Task,
    ProjectTask,
    RoutineTask,
    AssignedTask,
    RoutineTaskMaterial,
    task_watcher,
    task_assignee,
)
from .activity import TaskActivity, ActivityMaterial
from .comment import TaskComment, comment_mention
from .attachment import Attachment

# Tenant-scoped leaves
from .inventory import Material, Vendor
from .notification import Notification, notification_recipient

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "Tombstonable",
    "as_utc",
    "utcnow",
    "INCLUDE_TOMBSTONED",
    "ONLY_TOMBSTONED",
    "ALLOW_PURGE",
    "EntityKind",
    "ParentKind",
    # Tenant
    "Organization",
    "Department",
    "User",
    # Tasks
    "Task",
    "ProjectTask",
    "RoutineTask",
    "AssignedTask",
    "RoutineTaskMaterial",
    "task_watcher",
    "task_assignee",
    "TaskActivity",
    "ActivityMaterial",
    "TaskComment",
    "comment_mention",
    "Attachment",
    # Leaves
    "Material",
    "Vendor",
    "Notification",
    "notification_recipient",
]
