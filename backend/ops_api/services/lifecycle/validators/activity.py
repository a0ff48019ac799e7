"""TaskActivity validator."""

from __future__ import annotations

from ops_api.models import EntityKind, TaskActivity
from ops_shared.config.constants import ErrorCodes

from .base import BaseValidator, ValidationReport


class TaskActivityValidator(BaseValidator):
    kind = EntityKind.TASK_ACTIVITY

    def check_deletion(self, activity: TaskActivity, report: ValidationReport) -> None:
        materials = self.store.activity_material_ids(activity)
        if materials:
            report.warning(
                ErrorCodes.MATERIALS_PRESENT,
                f"The activity used {len(materials)} material line(s); materials are kept",
                field="materials",
                count=len(materials),
            )

    def check_restoration(self, activity: TaskActivity, report: ValidationReport) -> None:
        task = self.require_owner(report, EntityKind.TASK, activity.task_id, field="task_id")
        if task is not None and not task.supports_activities:
            report.error(
                ErrorCodes.INVALID_PARENT_TASK_TYPE,
                "Routine tasks cannot have activities",
                field="task_id",
                task_type=task.task_type,
            )

        self.require_scope_owners(activity, report)
        self.require_creator(activity, report, blocking=True)
        self.check_references(
            report,
            self.store.activity_material_ids(activity),
            EntityKind.MATERIAL,
            field="materials",
            deleted_code=ErrorCodes.MATERIALS_DELETED,
            scope_code=ErrorCodes.MATERIALS_WRONG_ORG_DEPT,
            organization_id=activity.organization_id,
            department_id=activity.department_id,
        )
