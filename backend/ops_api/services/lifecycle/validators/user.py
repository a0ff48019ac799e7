"""User validator."""

from __future__ import annotations

from ops_api.models import EntityKind, User, as_utc, utcnow
from ops_shared.config.constants import ErrorCodes, Roles

from .base import BaseValidator, ValidationReport


class UserValidator(BaseValidator):
    kind = EntityKind.USER

    def check_deletion(self, user: User, report: ValidationReport) -> None:
        if user.is_platform_user:
            report.error(
                ErrorCodes.PLATFORM_USER_DELETE_FORBIDDEN,
                "Platform users cannot be deleted",
            )

        if user.role == Roles.SUPER_ADMIN:
            org = self.store.load(EntityKind.ORGANIZATION, user.organization_id)
            if org is not None and org.is_live:
                others = self.store.users.count(
                    User.organization_id == user.organization_id,
                    User.role == Roles.SUPER_ADMIN,
                    User.id != user.id,
                )
                if not others:
                    report.error(
                        ErrorCodes.LAST_SUPER_ADMIN,
                        "Cannot delete the last SuperAdmin of an active organization",
                        organization_id=user.organization_id,
                    )

        if user.is_hod:
            dept = self.store.load(EntityKind.DEPARTMENT, user.department_id)
            if dept is not None and dept.is_live:
                others = self.store.users.count(
                    User.department_id == user.department_id,
                    User.is_hod.is_(True),
                    User.id != user.id,
                )
                if not others:
                    report.error(
                        ErrorCodes.LAST_HOD,
                        "Cannot delete the last head of an active department",
                        department_id=user.department_id,
                    )

        links = self.store.count_user_links(user.id)
        if any(links.values()):
            report.warning(
                ErrorCodes.REFERENCES_DETACHED,
                "The user will be removed from {watchers} watcher, {assignees} assignee, "
                "{mentions} mention and {recipients} recipient lists".format(**links),
                **links,
            )

    def check_restoration(self, user: User, report: ValidationReport) -> None:
        org, _ = self.require_scope_owners(user, report)

        self.check_unique(
            user,
            report,
            [
                ("email", ErrorCodes.DUPLICATE_EMAIL),
                ("employee_id", ErrorCodes.DUPLICATE_EMPLOYEE_ID),
            ],
            User.organization_id == user.organization_id,
        )

        if user.is_hod:
            sitting = self.store.users.count(
                User.department_id == user.department_id,
                User.is_hod.is_(True),
                User.id != user.id,
            )
            if sitting:
                report.error(
                    ErrorCodes.DUPLICATE_HOD,
                    "The department already has a live head of department",
                    field="is_hod",
                    department_id=user.department_id,
                )

        if user.is_platform_user and org is not None and not org.is_platform_org:
            report.error(
                ErrorCodes.PLATFORM_USER_NON_PLATFORM_ORG,
                "Platform users may only belong to the platform organization",
                field="is_platform_user",
            )

        locked_until = as_utc(user.locked_until)
        if locked_until is not None and locked_until > utcnow():
            report.warning(
                ErrorCodes.ACCOUNT_LOCKED,
                "The account is locked",
                field="locked_until",
                locked_until=locked_until.isoformat(),
            )
