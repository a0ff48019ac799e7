"""
Task Service: tasks, activities, comments and attachments.

Business rules:
- Task scope (organization, department, creator) must be live and consistent
- Project tasks need a live vendor of the same organization
- Routine task materials share the task's organization and department
- Assigned tasks need at least one assignee; no duplicates; same organization
- Watchers belong to the task's organization
- Routine tasks never get activities; an activity lists at most 20
  distinct materials with positive quantities
- Comment depth is parent depth + 1 and never exceeds 3; at most 5 mentions
- Attachment uploaders share the parent's organization and department

Usage:
    service = TaskService(db)
    task = service.create_assigned_task(org_id, dept_id, creator_id, {"title": "Fix pump"},
                                        assignee_ids=[7, 8])
    comment = service.add_comment(ParentKind.TASK, task.id, creator_id, "On it")
"""

from __future__ import annotations

import os
from typing import Any, Sequence

from ops_api.models import (
    ActivityMaterial,
    AssignedTask,
    Attachment,
    EntityKind,
    ParentKind,
    ProjectTask,
    RoutineTask,
    RoutineTaskMaterial,
    Task,
    TaskActivity,
    TaskComment,
)
from ops_shared.config.constants import ALLOWED_ATTACHMENT_EXTENSIONS, Limits
from ops_shared.config.logging import get_logger
from ops_shared.utils.exceptions import NotFoundError, ScopeViolationError, ValidationError

from .base import DomainService

logger = get_logger(__name__)


class TaskService(DomainService):
    """Write-time guards for tasks and everything hanging off them."""

    # =========================================================================
    # Tasks
    # =========================================================================

    def create_project_task(
        self,
        organization_id: int,
        department_id: int,
        created_by_id: int,
        data: dict[str, Any],
        *,
        vendor_id: int,
        watcher_ids: Sequence[int] = (),
    ) -> ProjectTask:
        self._check_task_scope(organization_id, department_id, created_by_id)
        vendor = self._require_live(EntityKind.VENDOR, vendor_id, field="vendor_id")
        if vendor.organization_id != organization_id:
            raise ScopeViolationError("ProjectTask", "vendor", [vendor_id])

        task = ProjectTask(
            organization_id=organization_id,
            department_id=department_id,
            created_by_id=created_by_id,
            vendor_id=vendor_id,
            **data,
        )
        return self._create_task(task, watcher_ids)

    def create_routine_task(
        self,
        organization_id: int,
        department_id: int,
        created_by_id: int,
        data: dict[str, Any],
        *,
        materials: Sequence[dict[str, int]] = (),
        watcher_ids: Sequence[int] = (),
    ) -> RoutineTask:
        """
        Create a routine task.

        materials: [{"material_id": 3, "quantity": 2}, ...]
        """
        self._check_task_scope(organization_id, department_id, created_by_id)
        start, end = data.get("scheduled_on"), data.get("recurrence_end_date")
        if start is not None and end is not None and end < start:
            raise ValidationError(
                "Recurrence end date precedes the scheduled date", field="recurrence_end_date"
            )
        lines = self._material_lines(materials, organization_id, department_id, owner="RoutineTask")

        task = RoutineTask(
            organization_id=organization_id,
            department_id=department_id,
            created_by_id=created_by_id,
            **data,
        )
        task.material_lines = [RoutineTaskMaterial(material_id=m, quantity=q) for m, q in lines]
        return self._create_task(task, watcher_ids)

    def create_assigned_task(
        self,
        organization_id: int,
        department_id: int,
        created_by_id: int,
        data: dict[str, Any],
        *,
        assignee_ids: Sequence[int],
        watcher_ids: Sequence[int] = (),
    ) -> AssignedTask:
        self._check_task_scope(organization_id, department_id, created_by_id)
        if not assignee_ids:
            raise ValidationError("Assigned tasks need at least one assignee", field="assignees")
        assignees = self._require_all_live(EntityKind.USER, assignee_ids, field="assignees")
        self._require_in_scope(
            assignees, owner="AssignedTask", reference="assignees", organization_id=organization_id
        )

        task = AssignedTask(
            organization_id=organization_id,
            department_id=department_id,
            created_by_id=created_by_id,
            **data,
        )
        task.assignees = assignees
        return self._create_task(task, watcher_ids)

    def _check_task_scope(self, organization_id: int, department_id: int, created_by_id: int) -> None:
        self._require_live(EntityKind.ORGANIZATION, organization_id)
        self._require_department(organization_id, department_id)
        creator = self._require_live(EntityKind.USER, created_by_id, field="created_by_id")
        if creator.organization_id != organization_id:
            raise ScopeViolationError("Task", "creator", [created_by_id])

    def _create_task(self, task: Task, watcher_ids: Sequence[int]) -> Any:
        if task.start_date and task.due_date and task.start_date > task.due_date:
            raise ValidationError("Start date is after the due date", field="start_date")
        watchers = self._require_all_live(EntityKind.USER, watcher_ids, field="watchers")
        self._require_in_scope(
            watchers, owner="Task", reference="watchers", organization_id=task.organization_id
        )
        task.watchers = watchers

        task = self._save(task)
        logger.info(
            "Task created",
            task_id=task.id,
            task_type=task.task_type,
            organization_id=task.organization_id,
            department_id=task.department_id,
        )
        return task

    # =========================================================================
    # Activities
    # =========================================================================

    def add_activity(
        self,
        task_id: int,
        created_by_id: int,
        description: str,
        *,
        activity_type: str | None = None,
        materials: Sequence[dict[str, int]] = (),
    ) -> TaskActivity:
        task = self._require_live(EntityKind.TASK, task_id, field="task_id")
        if not task.supports_activities:
            raise ValidationError("Routine tasks cannot have activities", task_id=task_id)
        self._require_member(created_by_id, task, owner="TaskActivity")
        if len(materials) > Limits.MAX_ACTIVITY_MATERIALS:
            raise ValidationError(
                f"An activity can list at most {Limits.MAX_ACTIVITY_MATERIALS} materials",
                field="materials",
            )
        lines = self._material_lines(
            materials, task.organization_id, task.department_id, owner="TaskActivity"
        )

        activity = TaskActivity(
            task_id=task.id,
            organization_id=task.organization_id,
            department_id=task.department_id,
            created_by_id=created_by_id,
            description=description,
            activity_type=activity_type,
        )
        activity.material_lines = [ActivityMaterial(material_id=m, quantity=q) for m, q in lines]
        activity = self._save(activity)
        logger.info("Activity added", activity_id=activity.id, task_id=task.id, materials=len(lines))
        return activity

    def _material_lines(
        self,
        materials: Sequence[dict[str, int]],
        organization_id: int,
        department_id: int,
        *,
        owner: str,
    ) -> list[tuple[int, int]]:
        lines = []
        for line in materials:
            quantity = line.get("quantity", Limits.MIN_MATERIAL_QUANTITY)
            if quantity < Limits.MIN_MATERIAL_QUANTITY:
                raise ValidationError(
                    "Material quantity must be positive", field="quantity", value=quantity
                )
            lines.append((line["material_id"], quantity))

        found = self._require_all_live(EntityKind.MATERIAL, [m for m, _ in lines], field="materials")
        self._require_in_scope(
            found,
            owner=owner,
            reference="materials",
            organization_id=organization_id,
            department_id=department_id,
        )
        return lines

    # =========================================================================
    # Comments and attachments
    # =========================================================================

    def _require_parent(self, parent_kind: ParentKind, parent_id: int) -> Any:
        parent = self.store.load_parent(parent_kind, parent_id)
        if parent is None or parent.is_deleted:
            raise NotFoundError(parent_kind.entity_kind.label, parent_id, field="parent_id")
        return parent

    def _require_member(self, user_id: int, parent: Any, *, owner: str) -> Any:
        user = self._require_live(EntityKind.USER, user_id)
        if user.organization_id != parent.organization_id:
            raise ScopeViolationError(owner, "user", [user_id])
        return user

    def add_comment(
        self,
        parent_kind: ParentKind,
        parent_id: int,
        created_by_id: int,
        content: str,
        *,
        mention_ids: Sequence[int] = (),
    ) -> TaskComment:
        """
        Comment on a task or activity, or reply to a comment.

        Raises:
            ValidationError: reply deeper than 3 levels, or more than 5 mentions
        """
        parent = self._require_parent(parent_kind, parent_id)
        depth = parent.depth + 1 if parent_kind is ParentKind.TASK_COMMENT else 1
        if depth > Limits.MAX_COMMENT_DEPTH:
            raise ValidationError(
                f"Comment depth {depth} exceeds the maximum of {Limits.MAX_COMMENT_DEPTH}",
                field="parent_id",
                depth=depth,
            )
        self._require_member(created_by_id, parent, owner="TaskComment")

        if len(mention_ids) > Limits.MAX_COMMENT_MENTIONS:
            raise ValidationError(
                f"A comment can mention at most {Limits.MAX_COMMENT_MENTIONS} users",
                field="mentions",
            )
        mentions = self._require_all_live(EntityKind.USER, mention_ids, field="mentions")
        self._require_in_scope(
            mentions,
            owner="TaskComment",
            reference="mentions",
            organization_id=parent.organization_id,
        )

        comment = TaskComment(
            parent_kind=parent_kind,
            parent_id=parent_id,
            content=content,
            depth=depth,
            organization_id=parent.organization_id,
            department_id=parent.department_id,
            created_by_id=created_by_id,
        )
        comment.mentions = mentions
        comment = self._save(comment)
        logger.info(
            "Comment added",
            comment_id=comment.id,
            parent_kind=parent_kind.value,
            parent_id=parent_id,
            depth=depth,
        )
        return comment

    def add_attachment(
        self,
        parent_kind: ParentKind,
        parent_id: int,
        uploaded_by_id: int,
        filename: str,
        file_url: str,
        *,
        file_type: str | None = None,
        file_size: int | None = None,
    ) -> Attachment:
        parent = self._require_parent(parent_kind, parent_id)
        uploader = self._require_live(EntityKind.USER, uploaded_by_id, field="uploaded_by_id")
        self._require_in_scope(
            [uploader],
            owner="Attachment",
            reference="uploader",
            organization_id=parent.organization_id,
            department_id=parent.department_id,
        )

        extension = os.path.splitext(filename)[1].lower()
        if extension not in ALLOWED_ATTACHMENT_EXTENSIONS:
            raise ValidationError(f"File type '{extension}' is not allowed", field="filename")
        if file_size is not None and file_size > Limits.MAX_ATTACHMENT_BYTES:
            raise ValidationError("Attachment is too large", field="file_size", value=file_size)

        attachment = self._save(Attachment(
            parent_kind=parent_kind,
            parent_id=parent_id,
            filename=filename,
            file_url=file_url,
            file_type=file_type,
            file_size=file_size,
            organization_id=parent.organization_id,
            department_id=parent.department_id,
            uploaded_by_id=uploaded_by_id,
        ))
        logger.info("Attachment added", attachment_id=attachment.id, parent_kind=parent_kind.value)
        return attachment
