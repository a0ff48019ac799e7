"""Organization and Department validators."""

from __future__ import annotations

from ops_api.models import Department, EntityKind, Material, Organization, Task, User, as_utc, utcnow
from ops_shared.config.constants import HOD_ELIGIBLE_ROLES, ErrorCodes

from .base import BaseValidator, ValidationReport


class OrganizationValidator(BaseValidator):
    kind = EntityKind.ORGANIZATION

    def check_deletion(self, org: Organization, report: ValidationReport) -> None:
        if org.is_platform_org:
            report.error(
                ErrorCodes.PLATFORM_ORG_DELETE_FORBIDDEN,
                "The platform organization cannot be deleted",
            )

        counts = {
            "departments": self.store.departments.count(Department.organization_id == org.id),
            "users": self.store.users.count(User.organization_id == org.id),
            "tasks": self.store.tasks.count(Task.organization_id == org.id),
        }
        limits = {
            "departments": self._settings.org_delete_department_threshold,
            "users": self._settings.org_delete_user_threshold,
            "tasks": self._settings.org_delete_task_threshold,
        }
        if any(counts[name] > limits[name] for name in counts):
            report.warning(
                ErrorCodes.MASSIVE_CASCADE_OPERATION,
                "Deleting this organization cascades to {departments} departments, "
                "{users} users and {tasks} tasks".format(**counts),
                **counts,
            )

    def check_restoration(self, org: Organization, report: ValidationReport) -> None:
        self.check_unique(
            org,
            report,
            [
                ("name", ErrorCodes.DUPLICATE_NAME),
                ("email", ErrorCodes.DUPLICATE_EMAIL),
                ("phone", ErrorCodes.DUPLICATE_PHONE),
            ],
        )

        expires = as_utc(org.subscription_expires_at)
        if expires is not None and expires < utcnow():
            report.warning(
                ErrorCodes.SUBSCRIPTION_EXPIRED,
                "The organization's subscription has expired",
                field="subscription_expires_at",
                expired_at=expires.isoformat(),
            )

        counts = {
            "departments": self.store.departments.count(
                Department.organization_id == org.id, only_tombstoned=True
            ),
            "users": self.store.users.count(User.organization_id == org.id, only_tombstoned=True),
        }
        if (
            counts["departments"] > self._settings.org_restore_department_threshold
            or counts["users"] > self._settings.org_restore_user_threshold
        ):
            report.warning(
                ErrorCodes.MASSIVE_CASCADE_RESTORATION,
                "Restoring this organization revives {departments} departments "
                "and {users} users".format(**counts),
                **counts,
            )


class DepartmentValidator(BaseValidator):
    kind = EntityKind.DEPARTMENT

    def check_deletion(self, dept: Department, report: ValidationReport) -> None:
        checks = (
            (
                ErrorCodes.LARGE_USER_COUNT,
                "users",
                self.store.users.count(User.department_id == dept.id),
                self._settings.department_user_threshold,
            ),
            (
                ErrorCodes.LARGE_TASK_COUNT,
                "tasks",
                self.store.tasks.count(Task.department_id == dept.id),
                self._settings.department_task_threshold,
            ),
            (
                ErrorCodes.LARGE_MATERIAL_COUNT,
                "materials",
                self.store.materials.count(Material.department_id == dept.id),
                self._settings.department_material_threshold,
            ),
        )
        for code, label, count, threshold in checks:
            if count > threshold:
                report.warning(
                    code,
                    f"Deleting this department cascades to {count} {label}",
                    count=count,
                    threshold=threshold,
                )

    def check_restoration(self, dept: Department, report: ValidationReport) -> None:
        self.require_owner(
            report, EntityKind.ORGANIZATION, dept.organization_id, field="organization_id"
        )
        self.check_unique(
            dept,
            report,
            [("name", ErrorCodes.DUPLICATE_NAME)],
            Department.organization_id == dept.organization_id,
        )
        if dept.manager_id is not None:
            self._check_manager(dept, report)

    def _check_manager(self, dept: Department, report: ValidationReport) -> None:
        manager = self.store.load(EntityKind.USER, dept.manager_id)
        if manager is None:
            report.error(
                ErrorCodes.MANAGER_NOT_FOUND,
                f"Manager {dept.manager_id} does not exist",
                field="manager_id",
                user_id=dept.manager_id,
            )
            return

        if manager.organization_id != dept.organization_id:
            report.error(
                ErrorCodes.MANAGER_WRONG_ORGANIZATION,
                "The manager belongs to another organization",
                field="manager_id",
                user_id=manager.id,
            )

        if manager.is_deleted:
            # A manager of this department comes back with it
            if manager.department_id == dept.id:
                report.warning(
                    ErrorCodes.MANAGER_DELETED,
                    "The manager is deleted and will be restored with the department",
                    field="manager_id",
                    user_id=manager.id,
                )
            else:
                report.error(
                    ErrorCodes.MANAGER_DELETED,
                    "The manager is deleted; restore them first",
                    field="manager_id",
                    user_id=manager.id,
                )

        if manager.role not in HOD_ELIGIBLE_ROLES or not manager.is_hod:
            report.error(
                ErrorCodes.MANAGER_INVALID_ROLE,
                "The manager must be a SuperAdmin or Admin flagged as head of department",
                field="manager_id",
                user_id=manager.id,
                role=manager.role,
            )
