"""
Tests for the write services: creation-time scope and uniqueness guards.
"""

from datetime import date

import pytest

from ops_api.models import EntityKind, ParentKind
from ops_api.services.crud import soft_delete
from ops_api.services.domain import OrganizationService, ResourceService, TaskService
from ops_shared.config.constants import Roles
from ops_shared.utils.exceptions import (
    DuplicateEntityError,
    NotFoundError,
    ScopeViolationError,
    ValidationError,
)


@pytest.fixture
def orgs(db_session):
    return OrganizationService(db_session)


@pytest.fixture
def tasks(db_session):
    return TaskService(db_session)


@pytest.fixture
def resources(db_session):
    return ResourceService(db_session)


@pytest.fixture
def tenant(orgs):
    org = orgs.create_organization({"name": "Acme", "email": "ops@acme.test"})
    dept = orgs.create_department(org.id, {"name": "Maintenance"})
    author = orgs.create_user(org.id, dept.id, {
        "first_name": "Ana",
        "last_name": "Diaz",
        "email": "ana@acme.test",
    })
    return {"org": org, "dept": dept, "author": author}


class TestOrganizationService:

    def test_duplicate_organization_name(self, orgs, tenant):
        with pytest.raises(DuplicateEntityError):
            orgs.create_organization({"name": "ACME", "email": "other@acme.test"})

    def test_tombstoned_duplicate_is_allowed(self, db_session, orgs, tenant):
        soft_delete(db_session, tenant["org"], actor_id=None)

        org = orgs.create_organization({"name": "Acme", "email": "ops@acme.test"})

        assert org.id != tenant["org"].id

    def test_department_name_unique_per_org(self, orgs, tenant):
        with pytest.raises(DuplicateEntityError):
            orgs.create_department(tenant["org"].id, {"name": "maintenance"})

        other = orgs.create_organization({"name": "Other", "email": "ops@other.test"})
        assert orgs.create_department(other.id, {"name": "Maintenance"}).organization_id == other.id

    def test_department_in_deleted_org(self, db_session, orgs, tenant):
        soft_delete(db_session, tenant["org"], actor_id=None)

        with pytest.raises(NotFoundError):
            orgs.create_department(tenant["org"].id, {"name": "Stores"})

    def test_department_manager_must_be_hod(self, orgs, tenant):
        with pytest.raises(ValidationError):
            orgs.create_department(
                tenant["org"].id, {"name": "Stores", "manager_id": tenant["author"].id}
            )

    def test_user_email_is_normalized_and_unique(self, orgs, tenant):
        with pytest.raises(DuplicateEntityError):
            orgs.create_user(tenant["org"].id, tenant["dept"].id, {
                "first_name": "Ana",
                "last_name": "Again",
                "email": " ANA@acme.test ",
            })

    def test_user_in_department_of_other_org(self, orgs, tenant):
        other = orgs.create_organization({"name": "Other", "email": "ops@other.test"})

        with pytest.raises(ScopeViolationError):
            orgs.create_user(other.id, tenant["dept"].id, {
                "first_name": "Bo",
                "last_name": "Li",
                "email": "bo@other.test",
            })

    def test_unknown_role(self, orgs, tenant):
        with pytest.raises(ValidationError):
            orgs.create_user(tenant["org"].id, tenant["dept"].id, {
                "first_name": "Bo",
                "last_name": "Li",
                "email": "bo@acme.test",
                "role": "Owner",
            })

    def test_hod_rules(self, orgs, tenant):
        org_id, dept_id = tenant["org"].id, tenant["dept"].id

        with pytest.raises(ValidationError):
            orgs.create_user(org_id, dept_id, {
                "first_name": "Bo", "last_name": "Li", "email": "bo@acme.test", "is_hod": True,
            })

        orgs.create_user(org_id, dept_id, {
            "first_name": "Cy", "last_name": "Ng", "email": "cy@acme.test",
            "role": Roles.ADMIN, "is_hod": True,
        })
        with pytest.raises(DuplicateEntityError):
            orgs.create_user(org_id, dept_id, {
                "first_name": "Di", "last_name": "Ro", "email": "di@acme.test",
                "role": Roles.SUPER_ADMIN, "is_hod": True,
            })

    def test_platform_user_outside_platform_org(self, orgs, tenant):
        with pytest.raises(ValidationError):
            orgs.create_user(tenant["org"].id, tenant["dept"].id, {
                "first_name": "Op", "last_name": "Erator", "email": "op@acme.test",
                "is_platform_user": True,
            })


class TestTaskService:

    def test_project_task_vendor_from_other_org(self, orgs, resources, tasks, tenant):
        other = orgs.create_organization({"name": "Other", "email": "ops@other.test"})
        vendor = resources.create_vendor(other.id, {"name": "Bolts Inc"})

        with pytest.raises(ScopeViolationError):
            tasks.create_project_task(
                tenant["org"].id, tenant["dept"].id, tenant["author"].id,
                {"title": "Roof"}, vendor_id=vendor.id,
            )

    def test_project_task_deleted_vendor(self, db_session, resources, tasks, tenant):
        vendor = resources.create_vendor(tenant["org"].id, {"name": "Bolts Inc"})
        soft_delete(db_session, vendor, actor_id=None)

        with pytest.raises(NotFoundError):
            tasks.create_project_task(
                tenant["org"].id, tenant["dept"].id, tenant["author"].id,
                {"title": "Roof"}, vendor_id=vendor.id,
            )

    def test_routine_task_with_materials(self, resources, tasks, tenant):
        material = resources.create_material(tenant["org"].id, tenant["dept"].id, {"name": "Grease"})

        task = tasks.create_routine_task(
            tenant["org"].id, tenant["dept"].id, tenant["author"].id,
            {"title": "Lubricate", "scheduled_on": date(2026, 1, 5)},
            materials=[{"material_id": material.id, "quantity": 2}],
        )

        assert [(line.material_id, line.quantity) for line in task.material_lines] == [(material.id, 2)]

    def test_routine_task_material_from_other_department(self, orgs, resources, tasks, tenant):
        stores = orgs.create_department(tenant["org"].id, {"name": "Stores"})
        material = resources.create_material(tenant["org"].id, stores.id, {"name": "Grease"})

        with pytest.raises(ScopeViolationError):
            tasks.create_routine_task(
                tenant["org"].id, tenant["dept"].id, tenant["author"].id,
                {"title": "Lubricate"},
                materials=[{"material_id": material.id}],
            )

    def test_routine_recurrence_before_schedule(self, tasks, tenant):
        with pytest.raises(ValidationError):
            tasks.create_routine_task(
                tenant["org"].id, tenant["dept"].id, tenant["author"].id,
                {"title": "Lubricate", "scheduled_on": date(2026, 3, 1), "recurrence_end_date": date(2026, 1, 1)},
            )

    def test_assigned_task_needs_assignees(self, tasks, tenant):
        with pytest.raises(ValidationError):
            tasks.create_assigned_task(
                tenant["org"].id, tenant["dept"].id, tenant["author"].id,
                {"title": "Inspect"}, assignee_ids=[],
            )

    def test_assigned_task_rejects_duplicate_ids(self, tasks, tenant):
        author_id = tenant["author"].id

        with pytest.raises(ValidationError):
            tasks.create_assigned_task(
                tenant["org"].id, tenant["dept"].id, author_id,
                {"title": "Inspect"}, assignee_ids=[author_id, author_id],
            )

    def test_activity_on_routine_task_rejected(self, tasks, tenant):
        routine = tasks.create_routine_task(
            tenant["org"].id, tenant["dept"].id, tenant["author"].id, {"title": "Sweep"},
        )

        with pytest.raises(ValidationError):
            tasks.add_activity(routine.id, tenant["author"].id, "Swept")

    def test_activity_material_rules(self, resources, tasks, tenant):
        author = tenant["author"]
        task = tasks.create_assigned_task(
            tenant["org"].id, tenant["dept"].id, author.id, {"title": "Fix"}, assignee_ids=[author.id],
        )
        material = resources.create_material(tenant["org"].id, tenant["dept"].id, {"name": "Tape"})

        with pytest.raises(ValidationError):
            tasks.add_activity(task.id, author.id, "Taped", materials=[{"material_id": material.id, "quantity": 0}])
        with pytest.raises(ValidationError):
            tasks.add_activity(
                task.id, author.id, "Taped",
                materials=[{"material_id": material.id}] * 21,
            )

        activity = tasks.add_activity(task.id, author.id, "Taped", materials=[{"material_id": material.id}])
        assert [line.quantity for line in activity.material_lines] == [1]

    def test_reply_depth_limit(self, tasks, tenant):
        author = tenant["author"]
        task = tasks.create_assigned_task(
            tenant["org"].id, tenant["dept"].id, author.id, {"title": "Fix"}, assignee_ids=[author.id],
        )
        first = tasks.add_comment(ParentKind.TASK, task.id, author.id, "Level 1")
        second = tasks.add_comment(ParentKind.TASK_COMMENT, first.id, author.id, "Level 2")
        third = tasks.add_comment(ParentKind.TASK_COMMENT, second.id, author.id, "Level 3")

        assert (first.depth, second.depth, third.depth) == (1, 2, 3)
        with pytest.raises(ValidationError):
            tasks.add_comment(ParentKind.TASK_COMMENT, third.id, author.id, "Level 4")

    def test_comment_mention_limit(self, orgs, tasks, tenant):
        org_id, dept_id, author = tenant["org"].id, tenant["dept"].id, tenant["author"]
        task = tasks.create_assigned_task(org_id, dept_id, author.id, {"title": "Fix"}, assignee_ids=[author.id])
        people = [
            orgs.create_user(org_id, dept_id, {"first_name": "P", "last_name": str(n), "email": f"p{n}@acme.test"})
            for n in range(6)
        ]

        with pytest.raises(ValidationError):
            tasks.add_comment(ParentKind.TASK, task.id, author.id, "Hi all", mention_ids=[p.id for p in people])

        comment = tasks.add_comment(ParentKind.TASK, task.id, author.id, "Hi", mention_ids=[p.id for p in people[:5]])
        assert len(comment.mentions) == 5

    def test_comment_on_deleted_parent(self, db_session, tasks, tenant):
        author = tenant["author"]
        task = tasks.create_assigned_task(
            tenant["org"].id, tenant["dept"].id, author.id, {"title": "Fix"}, assignee_ids=[author.id],
        )
        soft_delete(db_session, task, actor_id=None)

        with pytest.raises(NotFoundError):
            tasks.add_comment(ParentKind.TASK, task.id, author.id, "Too late")

    def test_attachment_rules(self, orgs, tasks, tenant):
        org_id, dept_id, author = tenant["org"].id, tenant["dept"].id, tenant["author"]
        task = tasks.create_assigned_task(org_id, dept_id, author.id, {"title": "Fix"}, assignee_ids=[author.id])
        stores = orgs.create_department(org_id, {"name": "Stores"})
        outsider = orgs.create_user(org_id, stores.id, {"first_name": "O", "last_name": "S", "email": "o@acme.test"})

        with pytest.raises(ValidationError):
            tasks.add_attachment(ParentKind.TASK, task.id, author.id, "run.exe", "https://files/run.exe")
        with pytest.raises(ScopeViolationError):
            tasks.add_attachment(ParentKind.TASK, task.id, outsider.id, "plan.pdf", "https://files/plan.pdf")

        attachment = tasks.add_attachment(ParentKind.TASK, task.id, author.id, "Plan.PDF", "https://files/plan.pdf")
        assert attachment.department_id == dept_id


class TestResourceService:

    def test_vendor_rating_range(self, resources, tenant):
        with pytest.raises(ValidationError):
            resources.create_vendor(tenant["org"].id, {"name": "Bolts", "rating": 6})

    def test_vendor_email_unique_per_org(self, resources, tenant):
        resources.create_vendor(tenant["org"].id, {"name": "Bolts", "email": "sales@bolts.test"})

        with pytest.raises(DuplicateEntityError):
            resources.create_vendor(tenant["org"].id, {"name": "Nuts", "email": "SALES@bolts.test"})

    def test_material_name_unique_per_department(self, orgs, resources, tenant):
        resources.create_material(tenant["org"].id, tenant["dept"].id, {"name": "Grease"})
        stores = orgs.create_department(tenant["org"].id, {"name": "Stores"})

        with pytest.raises(DuplicateEntityError):
            resources.create_material(tenant["org"].id, tenant["dept"].id, {"name": "grease"})
        assert resources.create_material(tenant["org"].id, stores.id, {"name": "Grease"}).id

    def test_notification_recipients_share_department(self, orgs, resources, tenant):
        stores = orgs.create_department(tenant["org"].id, {"name": "Stores"})
        outsider = orgs.create_user(
            tenant["org"].id, stores.id, {"first_name": "O", "last_name": "S", "email": "o@acme.test"}
        )

        with pytest.raises(ScopeViolationError):
            resources.create_notification(
                tenant["org"].id, tenant["dept"].id,
                {"title": "Heads up", "message": "Pipes"},
                recipient_ids=[outsider.id],
            )

    def test_notification_subject_must_be_live(self, db_session, resources, tasks, tenant):
        author = tenant["author"]
        task = tasks.create_assigned_task(
            tenant["org"].id, tenant["dept"].id, author.id, {"title": "Fix"}, assignee_ids=[author.id],
        )

        notice = resources.create_notification(
            tenant["org"].id, tenant["dept"].id,
            {"title": "Heads up", "message": "Pipes"},
            recipient_ids=[author.id],
            entity_kind=EntityKind.TASK,
            entity_id=task.id,
        )
        assert notice.entity_kind is EntityKind.TASK

        soft_delete(db_session, task, actor_id=None)
        with pytest.raises(NotFoundError):
            resources.create_notification(
                tenant["org"].id, tenant["dept"].id,
                {"title": "Again", "message": "Pipes"},
                entity_kind=EntityKind.TASK,
                entity_id=task.id,
            )
