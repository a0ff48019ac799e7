"""Material, Vendor and Notification validators: leaf kinds."""

from __future__ import annotations

from datetime import timedelta

from ops_api.models import EntityKind, Material, Notification, ProjectTask, Vendor, as_utc, utcnow
from ops_shared.config.constants import ErrorCodes

from .base import BaseValidator, ValidationReport


class MaterialValidator(BaseValidator):
    kind = EntityKind.MATERIAL

    def check_deletion(self, material: Material, report: ValidationReport) -> None:
        usage = self.store.material_usage(material.id)
        if usage:
            report.warning(
                ErrorCodes.MATERIAL_IN_USE,
                f"The material is used by {usage} live task(s) or activities",
                count=usage,
            )

    def check_restoration(self, material: Material, report: ValidationReport) -> None:
        self.require_scope_owners(material, report)
        self.check_unique(
            material,
            report,
            [("name", ErrorCodes.DUPLICATE_NAME)],
            Material.department_id == material.department_id,
        )
        self.require_creator(material, report, blocking=False)


class VendorValidator(BaseValidator):
    kind = EntityKind.VENDOR

    def check_deletion(self, vendor: Vendor, report: ValidationReport) -> None:
        projects = self.store.tasks.count(ProjectTask.vendor_id == vendor.id)
        if projects:
            report.warning(
                ErrorCodes.VENDOR_USED_IN_PROJECT_TASKS,
                f"The vendor is used by {projects} live project task(s)",
                count=projects,
            )

    def check_restoration(self, vendor: Vendor, report: ValidationReport) -> None:
        self.require_scope_owners(vendor, report)
        self.check_unique(
            vendor,
            report,
            [
                ("name", ErrorCodes.DUPLICATE_NAME),
                ("email", ErrorCodes.DUPLICATE_EMAIL),
                ("phone", ErrorCodes.DUPLICATE_PHONE),
            ],
            Vendor.organization_id == vendor.organization_id,
        )
        self.require_creator(vendor, report, blocking=False)


class NotificationValidator(BaseValidator):
    kind = EntityKind.NOTIFICATION

    def check_deletion(self, notification: Notification, report: ValidationReport) -> None:
        now = utcnow()
        created = as_utc(notification.created_at)
        ttl_warning = timedelta(days=self._settings.notification_ttl_warning_days)
        if created is not None and now - created > ttl_warning:
            report.warning(
                ErrorCodes.APPROACHING_TTL,
                "The notification is close to its retention limit",
                age_days=(now - created).days,
            )
        expires = as_utc(notification.expires_at)
        if expires is not None and expires < now:
            report.warning(
                ErrorCodes.NOTIFICATION_EXPIRED,
                "The notification has already expired",
                field="expires_at",
            )

    def check_restoration(self, notification: Notification, report: ValidationReport) -> None:
        self.require_scope_owners(notification, report)
        self.check_references(
            report,
            self.store.recipient_ids(notification),
            EntityKind.USER,
            field="recipients",
            deleted_code=ErrorCodes.RECIPIENTS_DELETED,
            scope_code=ErrorCodes.RECIPIENTS_WRONG_ORG_DEPT,
            organization_id=notification.organization_id,
            department_id=notification.department_id,
        )

        if notification.entity_kind is not None and notification.entity_id is not None:
            subject = self.store.load(notification.entity_kind, notification.entity_id)
            if subject is None:
                report.warning(
                    ErrorCodes.ENTITY_NOT_FOUND,
                    f"The {notification.entity_kind.label} this notification is about no longer exists",
                    field="entity_id",
                )
            elif subject.is_deleted:
                report.warning(
                    ErrorCodes.ENTITY_DELETED,
                    f"The {notification.entity_kind.label} this notification is about is deleted",
                    field="entity_id",
                )

        expires = as_utc(notification.expires_at)
        if expires is not None and expires < utcnow():
            report.error(
                ErrorCodes.NOTIFICATION_EXPIRED,
                "Expired notifications cannot be restored",
                field="expires_at",
            )
