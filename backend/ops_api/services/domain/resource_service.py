"""
Resource Service: materials, vendors and notifications.

Business rules:
- Material names are unique per department among live materials
- Vendor name, email and phone are unique per organization among live vendors
- Notification recipients share the notification's organization and department
"""

from __future__ import annotations

from typing import Any, Sequence

from ops_api.models import EntityKind, Material, Notification, Vendor
from ops_shared.config.logging import get_logger
from ops_shared.utils.exceptions import ValidationError

from .base import DomainService

logger = get_logger(__name__)


class ResourceService(DomainService):
    """Write-time guards for tenant-scoped leaf resources."""

    def create_material(
        self,
        organization_id: int,
        department_id: int,
        data: dict[str, Any],
        created_by_id: int | None = None,
    ) -> Material:
        self._require_live(EntityKind.ORGANIZATION, organization_id)
        self._require_department(organization_id, department_id)
        if created_by_id is not None:
            self._require_live(EntityKind.USER, created_by_id, field="created_by_id")
        self._ensure_unique(
            EntityKind.MATERIAL,
            "name",
            data.get("name"),
            Material.department_id == department_id,
        )

        material = self._save(Material(
            organization_id=organization_id,
            department_id=department_id,
            created_by_id=created_by_id,
            **data,
        ))
        logger.info("Material created", material_id=material.id, department_id=department_id)
        return material

    def create_vendor(
        self,
        organization_id: int,
        data: dict[str, Any],
        created_by_id: int | None = None,
    ) -> Vendor:
        self._require_live(EntityKind.ORGANIZATION, organization_id)
        if created_by_id is not None:
            self._require_live(EntityKind.USER, created_by_id, field="created_by_id")
        rating = data.get("rating")
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationError("Vendor rating must be between 1 and 5", field="rating")
        in_org = Vendor.organization_id == organization_id
        for attr in ("name", "email", "phone"):
            self._ensure_unique(EntityKind.VENDOR, attr, data.get(attr), in_org)

        vendor = self._save(Vendor(organization_id=organization_id, created_by_id=created_by_id, **data))
        logger.info("Vendor created", vendor_id=vendor.id, organization_id=organization_id)
        return vendor

    def create_notification(
        self,
        organization_id: int,
        department_id: int,
        data: dict[str, Any],
        *,
        recipient_ids: Sequence[int] = (),
        entity_kind: EntityKind | None = None,
        entity_id: int | None = None,
    ) -> Notification:
        """Create a notification, optionally about another entity of the tenant."""
        self._require_live(EntityKind.ORGANIZATION, organization_id)
        self._require_department(organization_id, department_id)
        recipients = self._require_all_live(EntityKind.USER, recipient_ids, field="recipients")
        self._require_in_scope(
            recipients,
            owner="Notification",
            reference="recipients",
            organization_id=organization_id,
            department_id=department_id,
        )
        if (entity_kind is None) != (entity_id is None):
            raise ValidationError("entity_kind and entity_id go together", field="entity_id")
        if entity_kind is not None:
            self._require_live(entity_kind, entity_id, field="entity_id")

        notification = Notification(
            organization_id=organization_id,
            department_id=department_id,
            entity_kind=entity_kind,
            entity_id=entity_id,
            **data,
        )
        notification.recipients = recipients
        notification = self._save(notification)
        logger.info(
            "Notification created",
            notification_id=notification.id,
            recipients=len(recipients),
        )
        return notification
