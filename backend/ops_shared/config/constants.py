"""
Centralized constants for the backend application.
Avoids magic strings for roles, task types and lifecycle error codes.

Usage:
    from ops_shared.config.constants import Roles, ErrorCodes, Limits

    if user.role == Roles.SUPER_ADMIN:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SUPER_ADMIN: Final[str] = "SuperAdmin"
    ADMIN: Final[str] = "Admin"
    MANAGER: Final[str] = "Manager"
    USER: Final[str] = "User"

    ALL: Final[list[str]] = [SUPER_ADMIN, ADMIN, MANAGER, USER]


# Only these roles may carry the head-of-department flag
HOD_ELIGIBLE_ROLES: Final[frozenset[str]] = frozenset({Roles.SUPER_ADMIN, Roles.ADMIN})


# =============================================================================
# Task Constants
# =============================================================================


class TaskType:
    """Task sub-kind discriminator values. Fixed at creation."""

    PROJECT: Final[str] = "ProjectTask"
    ROUTINE: Final[str] = "RoutineTask"
    ASSIGNED: Final[str] = "AssignedTask"

    ALL: Final[list[str]] = [PROJECT, ROUTINE, ASSIGNED]


class TaskStatus:
    """Task status constants."""

    TODO: Final[str] = "To Do"
    IN_PROGRESS: Final[str] = "In Progress"
    COMPLETED: Final[str] = "Completed"
    PENDING: Final[str] = "Pending"

    ALL: Final[list[str]] = [TODO, IN_PROGRESS, COMPLETED, PENDING]
    OPEN: Final[list[str]] = [TODO, IN_PROGRESS, PENDING]


class TaskPriority:
    """Task priority constants."""

    LOW: Final[str] = "Low"
    MEDIUM: Final[str] = "Medium"
    HIGH: Final[str] = "High"
    URGENT: Final[str] = "Urgent"

    ALL: Final[list[str]] = [LOW, MEDIUM, HIGH, URGENT]


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limits."""

    MAX_COMMENT_DEPTH: Final[int] = 3
    MAX_COMMENT_MENTIONS: Final[int] = 5
    MAX_ACTIVITY_MATERIALS: Final[int] = 20
    MIN_MATERIAL_QUANTITY: Final[int] = 1

    MAX_NAME_LENGTH: Final[int] = 200
    MAX_DESCRIPTION_LENGTH: Final[int] = 2000
    MAX_ATTACHMENT_BYTES: Final[int] = 10 * 1024 * 1024


ALLOWED_ATTACHMENT_EXTENSIONS: Final[frozenset[str]] = frozenset({
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".txt", ".csv",
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".mp4", ".zip",
})


# =============================================================================
# Lifecycle Error / Warning Codes
# =============================================================================


class ErrorCodes:
    """
    Closed vocabulary of validation codes reported by the lifecycle engine.

    Kind-prefixed codes (ORGANIZATION_DELETED, TASK_NOT_FOUND, ...) are built
    with not_found() / deleted() from the entity kind's code prefix.
    """

    # Engine
    MAX_DEPTH_EXCEEDED: Final[str] = "MAX_DEPTH_EXCEEDED"
    ALREADY_DELETED: Final[str] = "ALREADY_DELETED"
    NOT_DELETED: Final[str] = "NOT_DELETED"

    # Protected entities
    PLATFORM_ORG_DELETE_FORBIDDEN: Final[str] = "PLATFORM_ORG_DELETE_FORBIDDEN"
    PLATFORM_USER_DELETE_FORBIDDEN: Final[str] = "PLATFORM_USER_DELETE_FORBIDDEN"
    PLATFORM_USER_NON_PLATFORM_ORG: Final[str] = "PLATFORM_USER_NON_PLATFORM_ORG"
    LAST_SUPER_ADMIN: Final[str] = "LAST_SUPER_ADMIN"
    LAST_HOD: Final[str] = "LAST_HOD"

    # Uniqueness among live records
    DUPLICATE_NAME: Final[str] = "DUPLICATE_NAME"
    DUPLICATE_EMAIL: Final[str] = "DUPLICATE_EMAIL"
    DUPLICATE_PHONE: Final[str] = "DUPLICATE_PHONE"
    DUPLICATE_EMPLOYEE_ID: Final[str] = "DUPLICATE_EMPLOYEE_ID"
    DUPLICATE_HOD: Final[str] = "DUPLICATE_HOD"

    # Ancestors and owners
    PARENT_NOT_FOUND: Final[str] = "PARENT_NOT_FOUND"
    PARENT_DELETED: Final[str] = "PARENT_DELETED"
    CREATED_BY_NOT_FOUND: Final[str] = "CREATED_BY_NOT_FOUND"
    CREATED_BY_DELETED: Final[str] = "CREATED_BY_DELETED"
    INVALID_PARENT_TASK_TYPE: Final[str] = "INVALID_PARENT_TASK_TYPE"
    INVALID_DEPTH: Final[str] = "INVALID_DEPTH"

    # Department manager
    MANAGER_NOT_FOUND: Final[str] = "MANAGER_NOT_FOUND"
    MANAGER_DELETED: Final[str] = "MANAGER_DELETED"
    MANAGER_WRONG_ORGANIZATION: Final[str] = "MANAGER_WRONG_ORGANIZATION"
    MANAGER_INVALID_ROLE: Final[str] = "MANAGER_INVALID_ROLE"

    # Associative references
    WATCHERS_DELETED: Final[str] = "WATCHERS_DELETED"
    WATCHERS_WRONG_ORG: Final[str] = "WATCHERS_WRONG_ORG"
    VENDOR_NOT_FOUND: Final[str] = "VENDOR_NOT_FOUND"
    VENDOR_DELETED: Final[str] = "VENDOR_DELETED"
    VENDOR_WRONG_ORG: Final[str] = "VENDOR_WRONG_ORG"
    VENDOR_RELATIONSHIP: Final[str] = "VENDOR_RELATIONSHIP"
    VENDOR_USED_IN_PROJECT_TASKS: Final[str] = "VENDOR_USED_IN_PROJECT_TASKS"
    MATERIALS_PRESENT: Final[str] = "MATERIALS_PRESENT"
    MATERIALS_DELETED: Final[str] = "MATERIALS_DELETED"
    MATERIALS_WRONG_ORG_DEPT: Final[str] = "MATERIALS_WRONG_ORG_DEPT"
    MATERIAL_IN_USE: Final[str] = "MATERIAL_IN_USE"
    ASSIGNEES_PRESENT: Final[str] = "ASSIGNEES_PRESENT"
    NO_ASSIGNEES: Final[str] = "NO_ASSIGNEES"
    ASSIGNEES_DELETED: Final[str] = "ASSIGNEES_DELETED"
    NO_ACTIVE_ASSIGNEES: Final[str] = "NO_ACTIVE_ASSIGNEES"
    ASSIGNEES_WRONG_ORG: Final[str] = "ASSIGNEES_WRONG_ORG"
    MENTIONS_DELETED: Final[str] = "MENTIONS_DELETED"
    MENTIONS_WRONG_ORG: Final[str] = "MENTIONS_WRONG_ORG"
    UPLOADED_BY_DELETED: Final[str] = "UPLOADED_BY_DELETED"
    UPLOADED_BY_WRONG_ORG_DEPT: Final[str] = "UPLOADED_BY_WRONG_ORG_DEPT"
    RECIPIENTS_DELETED: Final[str] = "RECIPIENTS_DELETED"
    RECIPIENTS_WRONG_ORG_DEPT: Final[str] = "RECIPIENTS_WRONG_ORG_DEPT"
    ENTITY_NOT_FOUND: Final[str] = "ENTITY_NOT_FOUND"
    ENTITY_DELETED: Final[str] = "ENTITY_DELETED"
    REFERENCES_DETACHED: Final[str] = "REFERENCES_DETACHED"

    # Data consistency
    INVALID_DATES: Final[str] = "INVALID_DATES"
    INVALID_RECURRENCE_END_DATE: Final[str] = "INVALID_RECURRENCE_END_DATE"
    OVERDUE_TASK: Final[str] = "OVERDUE_TASK"
    NOTIFICATION_EXPIRED: Final[str] = "NOTIFICATION_EXPIRED"
    APPROACHING_TTL: Final[str] = "APPROACHING_TTL"
    SUBSCRIPTION_EXPIRED: Final[str] = "SUBSCRIPTION_EXPIRED"
    ACCOUNT_LOCKED: Final[str] = "ACCOUNT_LOCKED"
    RECURSIVE_CHILD_COMMENTS: Final[str] = "RECURSIVE_CHILD_COMMENTS"

    # Magnitude
    MASSIVE_CASCADE_OPERATION: Final[str] = "MASSIVE_CASCADE_OPERATION"
    MASSIVE_CASCADE_RESTORATION: Final[str] = "MASSIVE_CASCADE_RESTORATION"
    LARGE_USER_COUNT: Final[str] = "LARGE_USER_COUNT"
    LARGE_TASK_COUNT: Final[str] = "LARGE_TASK_COUNT"
    LARGE_MATERIAL_COUNT: Final[str] = "LARGE_MATERIAL_COUNT"
    LARGE_ACTIVITY_COUNT: Final[str] = "LARGE_ACTIVITY_COUNT"

    @staticmethod
    def not_found(prefix: str) -> str:
        return f"{prefix}_NOT_FOUND"

    @staticmethod
    def deleted(prefix: str) -> str:
        return f"{prefix}_DELETED"
