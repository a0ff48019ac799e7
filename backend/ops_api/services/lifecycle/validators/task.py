"""
Task validators.

TaskValidator carries the rules shared by every task; each sub-kind adds
its own through the check_kind_* hooks.
"""

from __future__ import annotations

from ops_api.models import (
    AssignedTask,
    EntityKind,
    ProjectTask,
    RoutineTask,
    Task,
    TaskActivity,
    as_utc,
    utcnow,
)
from ops_shared.config.constants import ErrorCodes, TaskStatus

from ..invariants import out_of_scope
from .base import BaseValidator, ValidationReport


class TaskValidator(BaseValidator):
    kind = EntityKind.TASK

    def check_deletion(self, task: Task, report: ValidationReport) -> None:
        if task.supports_activities:
            activities = self.store.activities.count(TaskActivity.task_id == task.id)
            threshold = self._settings.task_activity_threshold
            if activities > threshold:
                report.warning(
                    ErrorCodes.LARGE_ACTIVITY_COUNT,
                    f"Deleting this task cascades to {activities} activities",
                    count=activities,
                    threshold=threshold,
                )

        watchers = self.store.users.find_many(self.store.watcher_ids(task))
        strangers = out_of_scope(watchers, task.organization_id)
        if strangers:
            report.warning(
                ErrorCodes.WATCHERS_WRONG_ORG,
                f"{len(strangers)} watcher(s) belong to another organization",
                field="watchers",
                ids=strangers,
            )

        self.check_kind_deletion(task, report)

    def check_restoration(self, task: Task, report: ValidationReport) -> None:
        self.require_scope_owners(task, report)
        self.require_creator(task, report, blocking=True)
        self.check_references(
            report,
            self.store.watcher_ids(task),
            EntityKind.USER,
            field="watchers",
            deleted_code=ErrorCodes.WATCHERS_DELETED,
            scope_code=ErrorCodes.WATCHERS_WRONG_ORG,
            organization_id=task.organization_id,
        )
        self.check_kind_restoration(task, report)

    def check_kind_deletion(self, task: Task, report: ValidationReport) -> None:
        pass

    def check_kind_restoration(self, task: Task, report: ValidationReport) -> None:
        pass


class ProjectTaskValidator(TaskValidator):
    def check_kind_deletion(self, task: ProjectTask, report: ValidationReport) -> None:
        if task.vendor_id is not None:
            report.warning(
                ErrorCodes.VENDOR_RELATIONSHIP,
                "The task is linked to a vendor; the vendor is kept",
                field="vendor_id",
                vendor_id=task.vendor_id,
            )

    def check_kind_restoration(self, task: ProjectTask, report: ValidationReport) -> None:
        vendor = self.store.load(EntityKind.VENDOR, task.vendor_id)
        if vendor is None:
            report.error(
                ErrorCodes.VENDOR_NOT_FOUND,
                "Project tasks need an existing vendor",
                field="vendor_id",
                vendor_id=task.vendor_id,
            )
        else:
            if vendor.is_deleted:
                report.error(
                    ErrorCodes.VENDOR_DELETED,
                    f"Vendor {vendor.id} is deleted; restore it first",
                    field="vendor_id",
                    vendor_id=vendor.id,
                )
            if vendor.organization_id != task.organization_id:
                report.error(
                    ErrorCodes.VENDOR_WRONG_ORG,
                    "The vendor belongs to another organization",
                    field="vendor_id",
                    vendor_id=vendor.id,
                )

        start, due = as_utc(task.start_date), as_utc(task.due_date)
        if start is not None and due is not None and start > due:
            report.warning(
                ErrorCodes.INVALID_DATES,
                "The start date is after the due date",
                field="start_date",
            )
        if due is not None and due < utcnow() and task.status != TaskStatus.COMPLETED:
            report.warning(
                ErrorCodes.OVERDUE_TASK,
                "The task is past its due date",
                field="due_date",
                due_date=due.isoformat(),
            )


class RoutineTaskValidator(TaskValidator):
    def check_kind_deletion(self, task: RoutineTask, report: ValidationReport) -> None:
        materials = self.store.routine_material_ids(task)
        if materials:
            report.warning(
                ErrorCodes.MATERIALS_PRESENT,
                f"The task consumes {len(materials)} material line(s); materials are kept",
                field="materials",
                count=len(materials),
            )

    def check_kind_restoration(self, task: RoutineTask, report: ValidationReport) -> None:
        self.check_references(
            report,
            self.store.routine_material_ids(task),
            EntityKind.MATERIAL,
            field="materials",
            deleted_code=ErrorCodes.MATERIALS_DELETED,
            scope_code=ErrorCodes.MATERIALS_WRONG_ORG_DEPT,
            organization_id=task.organization_id,
            department_id=task.department_id,
        )
        if (
            task.recurrence_end_date is not None
            and task.scheduled_on is not None
            and task.recurrence_end_date < task.scheduled_on
        ):
            report.error(
                ErrorCodes.INVALID_RECURRENCE_END_DATE,
                "The recurrence ends before the first scheduled date",
                field="recurrence_end_date",
            )


class AssignedTaskValidator(TaskValidator):
    def check_kind_deletion(self, task: AssignedTask, report: ValidationReport) -> None:
        assignees = self.store.assignee_ids(task)
        if assignees:
            report.warning(
                ErrorCodes.ASSIGNEES_PRESENT,
                f"The task is assigned to {len(assignees)} user(s)",
                field="assignees",
                ids=assignees,
            )

    def check_kind_restoration(self, task: AssignedTask, report: ValidationReport) -> None:
        assignee_ids = self.store.assignee_ids(task)
        if not assignee_ids:
            report.error(
                ErrorCodes.NO_ASSIGNEES,
                "Assigned tasks need at least one assignee",
                field="assignees",
            )
            return

        split = self.check_references(
            report,
            assignee_ids,
            EntityKind.USER,
            field="assignees",
            deleted_code=ErrorCodes.ASSIGNEES_DELETED,
            scope_code=ErrorCodes.ASSIGNEES_WRONG_ORG,
            organization_id=task.organization_id,
        )
        if not split.live:
            report.error(
                ErrorCodes.NO_ACTIVE_ASSIGNEES,
                "None of the task's assignees is live",
                field="assignees",
            )
