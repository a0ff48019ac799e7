"""
Closed enumerations of entity kinds.

EntityKind names every persisted kind; ParentKind is the tagged union of
kinds that can own comments and attachments. Both are stored by name.
"""

import enum


class EntityKind(str, enum.Enum):
    ORGANIZATION = "organization"
    DEPARTMENT = "department"
    USER = "user"
    TASK = "task"
    TASK_ACTIVITY = "task_activity"
    TASK_COMMENT = "task_comment"
    ATTACHMENT = "attachment"
    MATERIAL = "material"
    VENDOR = "vendor"
    NOTIFICATION = "notification"

    @property
    def code_prefix(self) -> str:
        """Prefix used in kind-specific error codes, e.g. TASK_ACTIVITY_DELETED."""
        return self.name

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title().replace(" ", "")


class ParentKind(str, enum.Enum):
    TASK = "task"
    TASK_ACTIVITY = "task_activity"
    TASK_COMMENT = "task_comment"

    @property
    def entity_kind(self) -> EntityKind:
        return EntityKind(self.value)
