"""
Organization Service: tenants, departments and users.

Business rules:
- Organization name, email and phone are unique among live organizations
- Department names are unique per organization
- User email and employee id are unique per organization among live users
- A department has at most one live head of department (HOD)
- Only SuperAdmin and Admin users may be HOD
- Platform users only live in the platform organization

Usage:
    service = OrganizationService(db)
    org = service.create_organization({"name": "Acme", "email": "ops@acme.test"})
    dept = service.create_department(org.id, {"name": "Maintenance"})
    user = service.create_user(org.id, dept.id, {"first_name": "Ana", ...})
"""

from __future__ import annotations

from typing import Any

from ops_api.models import Department, EntityKind, Organization, User
from ops_shared.config.constants import HOD_ELIGIBLE_ROLES, Roles
from ops_shared.config.logging import get_logger, mask_email
from ops_shared.utils.exceptions import DuplicateEntityError, ScopeViolationError, ValidationError

from .base import DomainService

logger = get_logger(__name__)


class OrganizationService(DomainService):
    """Write-time guards for the tenant structure."""

    def create_organization(self, data: dict[str, Any]) -> Organization:
        """
        Create an organization.

        Raises:
            DuplicateEntityError: name, email or phone already used by a live organization
        """
        for attr in ("name", "email", "phone"):
            self._ensure_unique(EntityKind.ORGANIZATION, attr, data.get(attr))

        org = self._save(Organization(**data))
        logger.info("Organization created", organization_id=org.id, name=org.name)
        return org

    def create_department(self, organization_id: int, data: dict[str, Any]) -> Department:
        """
        Create a department in a live organization.

        A manager, when given, must be a live HOD-eligible user of the
        organization flagged as head of department.
        """
        self._require_live(EntityKind.ORGANIZATION, organization_id)
        self._ensure_unique(
            EntityKind.DEPARTMENT,
            "name",
            data.get("name"),
            Department.organization_id == organization_id,
        )

        manager_id = data.get("manager_id")
        if manager_id is not None:
            manager = self._require_live(EntityKind.USER, manager_id, field="manager_id")
            if manager.organization_id != organization_id:
                raise ScopeViolationError("Department", "manager", [manager_id])
            if manager.role not in HOD_ELIGIBLE_ROLES or not manager.is_hod:
                raise ValidationError(
                    "Department manager must be a SuperAdmin or Admin flagged as HOD",
                    field="manager_id",
                )

        dept = self._save(Department(organization_id=organization_id, **data))
        logger.info("Department created", department_id=dept.id, organization_id=organization_id)
        return dept

    def create_user(self, organization_id: int, department_id: int, data: dict[str, Any]) -> User:
        """
        Create a user in a department of the organization.

        Raises:
            NotFoundError: organization or department missing or deleted
            ScopeViolationError: department belongs to another organization
            DuplicateEntityError: email, employee id or HOD seat already taken
            ValidationError: role cannot hold the HOD flag, or platform mismatch
        """
        org = self._require_live(EntityKind.ORGANIZATION, organization_id)
        self._require_department(organization_id, department_id)

        data = dict(data)
        if data.get("email"):
            data["email"] = data["email"].strip().lower()
        role = data.get("role", Roles.USER)
        if role not in Roles.ALL:
            raise ValidationError(f"Unknown role '{role}'", field="role")

        in_org = User.organization_id == organization_id
        self._ensure_unique(EntityKind.USER, "email", data.get("email"), in_org)
        self._ensure_unique(EntityKind.USER, "employee_id", data.get("employee_id"), in_org)

        if data.get("is_hod"):
            if role not in HOD_ELIGIBLE_ROLES:
                raise ValidationError("Only SuperAdmin or Admin users can be HOD", field="is_hod")
            sitting = self.store.users.count(
                User.department_id == department_id, User.is_hod.is_(True)
            )
            if sitting:
                raise DuplicateEntityError("Head of department", str(department_id), field="is_hod")

        if data.get("is_platform_user") and not org.is_platform_org:
            raise ValidationError(
                "Platform users may only belong to the platform organization",
                field="is_platform_user",
            )

        user = self._save(User(organization_id=organization_id, department_id=department_id, **data))
        logger.info(
            "User created",
            user_id=user.id,
            email=mask_email(user.email),
            organization_id=organization_id,
            department_id=department_id,
        )
        return user
