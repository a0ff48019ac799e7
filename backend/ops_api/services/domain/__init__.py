"""
Domain write services.

They create entities and reject scope or uniqueness violations before
anything is written. Lifecycle transitions go through the cascade engine.

Usage:
    from ops_api.services.domain import TaskService

    service = TaskService(db)
    reply = service.add_comment(ParentKind.TASK_COMMENT, comment_id, user_id, "Done")
"""

from .base import DomainService
from .organization_service import OrganizationService
from .task_service import TaskService
from .resource_service import ResourceService

__all__ = [
    "DomainService",
    "OrganizationService",
    "TaskService",
    "ResourceService",
]
