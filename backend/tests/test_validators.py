"""
Tests for the per-kind precondition validators.

Validators are exercised through the engine's dry-run previews, which load
the entity in any state and never write.
"""

from datetime import date, timedelta

import pytest

from ops_api.models import EntityKind, ParentKind, utcnow
from ops_api.services.crud import soft_delete
from ops_api.services.lifecycle import LifecycleStore, get_cascade_engine, validator_for
from ops_api.services.lifecycle.validators import (
    AssignedTaskValidator,
    ProjectTaskValidator,
    RoutineTaskValidator,
    UserValidator,
)
from ops_shared.config.constants import ErrorCodes, Roles
from ops_shared.config.settings import Settings


@pytest.fixture
def org(make):
    return make.organization()


@pytest.fixture
def dept(make, org):
    return make.department(org)


@pytest.fixture
def member(make, dept):
    return make.user(dept)


class TestDispatch:
    """validator_for picks the class by kind and task sub-kind."""

    def test_task_sub_kinds(self, db_session, make, org, member):
        store = LifecycleStore(db_session)

        assert isinstance(validator_for(make.project_task(member, make.vendor(org)), store), ProjectTaskValidator)
        assert isinstance(validator_for(make.routine_task(member), store), RoutineTaskValidator)
        assert isinstance(validator_for(make.assigned_task(member, [member]), store), AssignedTaskValidator)
        assert isinstance(validator_for(member, store), UserValidator)

    def test_items_carry_entity_kind_and_id(self, cascade, make, org):
        platform = make.organization(is_platform_org=True)

        result = cascade.validate_deletion(EntityKind.ORGANIZATION, platform.id)

        item = result.errors[0]
        assert item.metadata["entity_kind"] == "organization"
        assert item.metadata["entity_id"] == platform.id


class TestOrganizationValidator:

    def test_platform_org_cannot_be_deleted(self, cascade, make):
        platform = make.organization(is_platform_org=True)

        result = cascade.validate_deletion(EntityKind.ORGANIZATION, platform.id)

        assert not result.valid
        assert result.error_codes() == [ErrorCodes.PLATFORM_ORG_DELETE_FORBIDDEN]

    def test_massive_cascade_is_a_warning(self, db_session, make, org, dept):
        engine = get_cascade_engine(db_session, Settings(org_delete_department_threshold=0))

        result = engine.validate_deletion(EntityKind.ORGANIZATION, org.id)

        assert result.valid
        assert ErrorCodes.MASSIVE_CASCADE_OPERATION in result.warning_codes()

    def test_restore_blocked_by_live_duplicate_name(self, db_session, cascade, make):
        old = make.organization(name="Acme")
        soft_delete(db_session, old, actor_id=None)
        make.organization(name="ACME")

        result = cascade.validate_restoration(EntityKind.ORGANIZATION, old.id)

        assert ErrorCodes.DUPLICATE_NAME in result.error_codes()

    def test_tombstoned_duplicate_does_not_block(self, db_session, cascade, make):
        old = make.organization(name="Acme")
        twin = make.organization(name="Acme")
        soft_delete(db_session, old, actor_id=None)
        soft_delete(db_session, twin, actor_id=None)

        assert cascade.validate_restoration(EntityKind.ORGANIZATION, old.id).valid

    def test_expired_subscription_warns(self, db_session, cascade, make):
        org = make.organization(subscription_expires_at=utcnow() - timedelta(days=1))
        soft_delete(db_session, org, actor_id=None)

        result = cascade.validate_restoration(EntityKind.ORGANIZATION, org.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.SUBSCRIPTION_EXPIRED]


class TestDepartmentValidator:

    def test_restore_requires_live_organization(self, db_session, cascade, org, dept):
        soft_delete(db_session, org, actor_id=None)
        soft_delete(db_session, dept, actor_id=None)

        result = cascade.validate_restoration(EntityKind.DEPARTMENT, dept.id)

        assert result.error_codes() == [ErrorCodes.deleted("ORGANIZATION")]

    def test_large_user_count_warns(self, db_session, make, dept, member):
        engine = get_cascade_engine(db_session, Settings(department_user_threshold=0))

        result = engine.validate_deletion(EntityKind.DEPARTMENT, dept.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.LARGE_USER_COUNT]

    def test_manager_must_be_hod(self, cascade, dept, member):
        dept.manager_id = member.id

        result = cascade.validate_restoration(EntityKind.DEPARTMENT, dept.id)

        assert result.error_codes() == [ErrorCodes.MANAGER_INVALID_ROLE]

    def test_manager_from_other_organization(self, cascade, make, dept):
        foreign = make.user(make.department(make.organization()), role=Roles.ADMIN, is_hod=True)
        dept.manager_id = foreign.id

        result = cascade.validate_restoration(EntityKind.DEPARTMENT, dept.id)

        assert ErrorCodes.MANAGER_WRONG_ORGANIZATION in result.error_codes()

    def test_missing_manager(self, cascade, dept):
        dept.manager_id = 9999

        result = cascade.validate_restoration(EntityKind.DEPARTMENT, dept.id)

        assert result.error_codes() == [ErrorCodes.MANAGER_NOT_FOUND]

    def test_deleted_manager_of_own_department_only_warns(self, db_session, cascade, make, dept):
        hod = make.user(dept, role=Roles.ADMIN, is_hod=True)
        dept.manager_id = hod.id
        soft_delete(db_session, hod, actor_id=None)

        result = cascade.validate_restoration(EntityKind.DEPARTMENT, dept.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.MANAGER_DELETED]

    def test_deleted_manager_elsewhere_blocks(self, db_session, cascade, make, org, dept):
        hod = make.user(make.department(org), role=Roles.ADMIN, is_hod=True)
        dept.manager_id = hod.id
        soft_delete(db_session, hod, actor_id=None)

        result = cascade.validate_restoration(EntityKind.DEPARTMENT, dept.id)

        assert result.error_codes() == [ErrorCodes.MANAGER_DELETED]


class TestUserValidator:

    def test_last_super_admin(self, cascade, seed_org):
        result = cascade.validate_deletion(EntityKind.USER, seed_org["super_admin"].id)

        assert ErrorCodes.LAST_SUPER_ADMIN in result.error_codes()

    def test_second_super_admin_unblocks(self, cascade, make, seed_org):
        make.user(seed_org["dept"], role=Roles.SUPER_ADMIN)

        result = cascade.validate_deletion(EntityKind.USER, seed_org["super_admin"].id)

        assert result.valid

    def test_last_super_admin_of_deleted_org_may_go(self, db_session, cascade, seed_org):
        soft_delete(db_session, seed_org["org"], actor_id=None)

        result = cascade.validate_deletion(EntityKind.USER, seed_org["super_admin"].id)

        assert ErrorCodes.LAST_SUPER_ADMIN not in result.error_codes()

    def test_last_hod(self, cascade, seed_org):
        result = cascade.validate_deletion(EntityKind.USER, seed_org["hod"].id)

        assert result.error_codes() == [ErrorCodes.LAST_HOD]

    def test_platform_user(self, cascade, make, dept):
        operator = make.user(dept, is_platform_user=True)

        result = cascade.validate_deletion(EntityKind.USER, operator.id)

        assert result.error_codes() == [ErrorCodes.PLATFORM_USER_DELETE_FORBIDDEN]

    def test_references_detached_warning_counts_links(self, cascade, make, org, member):
        task = make.assigned_task(member, [member], watchers=[member])
        make.comment(task, member, mentions=[member])

        result = cascade.validate_deletion(EntityKind.USER, member.id)

        assert result.valid
        warning = result.warnings[0]
        assert warning.code == ErrorCodes.REFERENCES_DETACHED
        assert warning.metadata["watchers"] == 1
        assert warning.metadata["assignees"] == 1
        assert warning.metadata["mentions"] == 1
        assert warning.metadata["recipients"] == 0

    def test_restore_duplicate_email(self, db_session, cascade, make, dept):
        old = make.user(dept, email="ana@ops.test")
        soft_delete(db_session, old, actor_id=None)
        make.user(dept, email="ANA@ops.test")

        result = cascade.validate_restoration(EntityKind.USER, old.id)

        assert result.error_codes() == [ErrorCodes.DUPLICATE_EMAIL]

    def test_restore_duplicate_hod(self, db_session, cascade, make, dept):
        old = make.user(dept, role=Roles.ADMIN, is_hod=True)
        soft_delete(db_session, old, actor_id=None)
        make.user(dept, role=Roles.ADMIN, is_hod=True)

        result = cascade.validate_restoration(EntityKind.USER, old.id)

        assert result.error_codes() == [ErrorCodes.DUPLICATE_HOD]

    def test_restore_requires_live_department(self, db_session, cascade, dept, member):
        soft_delete(db_session, dept, actor_id=None)
        soft_delete(db_session, member, actor_id=None)

        result = cascade.validate_restoration(EntityKind.USER, member.id)

        assert result.error_codes() == [ErrorCodes.deleted("DEPARTMENT")]

    def test_platform_user_outside_platform_org(self, cascade, make, dept):
        operator = make.user(dept, is_platform_user=True)

        result = cascade.validate_restoration(EntityKind.USER, operator.id)

        assert result.error_codes() == [ErrorCodes.PLATFORM_USER_NON_PLATFORM_ORG]

    def test_locked_account_warns(self, cascade, make, dept):
        locked = make.user(dept, locked_until=utcnow() + timedelta(hours=1))

        result = cascade.validate_restoration(EntityKind.USER, locked.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.ACCOUNT_LOCKED]


class TestTaskValidators:

    def test_restore_requires_live_creator(self, db_session, cascade, make, dept, member):
        task = make.assigned_task(member, [make.user(dept)])
        soft_delete(db_session, member, actor_id=None)

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.error_codes() == [ErrorCodes.CREATED_BY_DELETED]

    def test_deleted_watchers_only_warn(self, db_session, cascade, make, dept, member):
        watcher = make.user(dept)
        task = make.assigned_task(member, [member], watchers=[watcher])
        soft_delete(db_session, watcher, actor_id=None)

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.WATCHERS_DELETED]

    def test_project_vendor_deleted(self, db_session, cascade, make, org, member):
        vendor = make.vendor(org)
        task = make.project_task(member, vendor)
        soft_delete(db_session, vendor, actor_id=None)

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.error_codes() == [ErrorCodes.VENDOR_DELETED]

    def test_project_vendor_other_org(self, cascade, make, member):
        task = make.project_task(member, make.vendor(make.organization()))

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.error_codes() == [ErrorCodes.VENDOR_WRONG_ORG]

    def test_project_dates(self, cascade, make, org, member):
        now = utcnow()
        task = make.project_task(
            member,
            make.vendor(org),
            start_date=now - timedelta(days=1),
            due_date=now - timedelta(days=3),
        )

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.valid
        assert set(result.warning_codes()) == {ErrorCodes.INVALID_DATES, ErrorCodes.OVERDUE_TASK}

    def test_project_delete_reports_vendor_relationship(self, cascade, make, org, member):
        task = make.project_task(member, make.vendor(org))

        result = cascade.validate_deletion(EntityKind.TASK, task.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.VENDOR_RELATIONSHIP]

    def test_routine_recurrence_end_before_schedule(self, cascade, make, member):
        task = make.routine_task(
            member,
            scheduled_on=date(2026, 3, 1),
            recurrence_end_date=date(2026, 2, 1),
        )

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.error_codes() == [ErrorCodes.INVALID_RECURRENCE_END_DATE]

    def test_routine_materials(self, db_session, cascade, make, dept, member):
        material = make.material(dept)
        task = make.routine_task(member, materials=[material])

        assert cascade.validate_deletion(EntityKind.TASK, task.id).warning_codes() == [
            ErrorCodes.MATERIALS_PRESENT
        ]

        soft_delete(db_session, material, actor_id=None)
        result = cascade.validate_restoration(EntityKind.TASK, task.id)
        assert result.valid
        assert result.warning_codes() == [ErrorCodes.MATERIALS_DELETED]

    def test_routine_material_from_other_department(self, cascade, make, org, member):
        task = make.routine_task(member, materials=[make.material(make.department(org))])

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.error_codes() == [ErrorCodes.MATERIALS_WRONG_ORG_DEPT]

    def test_assigned_without_live_assignee(self, db_session, cascade, make, dept, member):
        assignee = make.user(dept)
        task = make.assigned_task(member, [assignee])
        soft_delete(db_session, assignee, actor_id=None)

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert result.error_codes() == [ErrorCodes.NO_ACTIVE_ASSIGNEES]
        assert result.warning_codes() == [ErrorCodes.ASSIGNEES_DELETED]

    def test_assigned_with_no_assignees(self, cascade, make, member):
        task = make.assigned_task(member, [])

        result = cascade.validate_restoration(EntityKind.TASK, task.id)

        assert ErrorCodes.NO_ASSIGNEES in result.error_codes()

    def test_assigned_delete_reports_assignees(self, cascade, make, member):
        task = make.assigned_task(member, [member])

        result = cascade.validate_deletion(EntityKind.TASK, task.id)

        assert result.warning_codes() == [ErrorCodes.ASSIGNEES_PRESENT]

    def test_large_activity_count(self, db_session, make, member):
        task = make.assigned_task(member, [member])
        make.activity(task, member)
        engine = get_cascade_engine(db_session, Settings(task_activity_threshold=0))

        result = engine.validate_deletion(EntityKind.TASK, task.id)

        assert ErrorCodes.LARGE_ACTIVITY_COUNT in result.warning_codes()


class TestActivityValidator:

    def test_routine_task_cannot_hold_activities(self, cascade, make, member):
        activity = make.activity(make.routine_task(member), member)

        result = cascade.validate_restoration(EntityKind.TASK_ACTIVITY, activity.id)

        assert result.error_codes() == [ErrorCodes.INVALID_PARENT_TASK_TYPE]

    def test_restore_requires_live_task(self, db_session, cascade, make, member):
        task = make.assigned_task(member, [member])
        activity = make.activity(task, member)
        soft_delete(db_session, task, actor_id=None)

        result = cascade.validate_restoration(EntityKind.TASK_ACTIVITY, activity.id)

        assert result.error_codes() == [ErrorCodes.deleted("TASK")]


class TestCommentValidator:

    def test_depth_above_limit_blocks_delete(self, cascade, make, member):
        task = make.assigned_task(member, [member])
        comment = make.comment(task, member, depth=4)

        result = cascade.validate_deletion(EntityKind.TASK_COMMENT, comment.id)

        assert result.error_codes() == [ErrorCodes.INVALID_DEPTH]

    def test_replies_warn_on_delete(self, cascade, make, member):
        task = make.assigned_task(member, [member])
        comment = make.comment(task, member)
        make.comment(comment, member)

        result = cascade.validate_deletion(EntityKind.TASK_COMMENT, comment.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.RECURSIVE_CHILD_COMMENTS]

    def test_restore_requires_live_parent(self, db_session, cascade, make, member):
        task = make.assigned_task(member, [member])
        comment = make.comment(task, member)
        reply = make.comment(comment, member)
        soft_delete(db_session, comment, actor_id=None)

        result = cascade.validate_restoration(EntityKind.TASK_COMMENT, reply.id)

        assert result.error_codes() == [ErrorCodes.PARENT_DELETED]

    def test_restore_checks_stored_depth(self, cascade, make, member):
        task = make.assigned_task(member, [member])
        comment = make.comment(task, member)
        reply = make.comment(comment, member, depth=3)

        result = cascade.validate_restoration(EntityKind.TASK_COMMENT, reply.id)

        assert result.error_codes() == [ErrorCodes.INVALID_DEPTH]
        assert result.errors[0].metadata["expected"] == 2

    def test_mention_from_other_org(self, cascade, make, member):
        task = make.assigned_task(member, [member])
        stranger = make.user(make.department(make.organization()))
        comment = make.comment(task, member, mentions=[stranger])

        result = cascade.validate_restoration(EntityKind.TASK_COMMENT, comment.id)

        assert result.error_codes() == [ErrorCodes.MENTIONS_WRONG_ORG]


class TestAttachmentValidator:

    def test_uploader_from_other_department(self, cascade, make, org, member):
        task = make.assigned_task(member, [member])
        outsider = make.user(make.department(org))
        attachment = make.attachment(task, outsider)

        result = cascade.validate_restoration(EntityKind.ATTACHMENT, attachment.id)

        assert result.error_codes() == [ErrorCodes.UPLOADED_BY_WRONG_ORG_DEPT]

    def test_deleted_uploader_only_warns(self, db_session, cascade, make, dept, member):
        task = make.assigned_task(member, [member])
        uploader = make.user(dept)
        attachment = make.attachment(task, uploader)
        soft_delete(db_session, uploader, actor_id=None)

        result = cascade.validate_restoration(EntityKind.ATTACHMENT, attachment.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.UPLOADED_BY_DELETED]

    def test_restore_requires_live_parent(self, db_session, cascade, make, member):
        task = make.assigned_task(member, [member])
        comment = make.comment(task, member)
        attachment = make.attachment(comment, member, parent_kind=ParentKind.TASK_COMMENT)
        soft_delete(db_session, comment, actor_id=None)

        result = cascade.validate_restoration(EntityKind.ATTACHMENT, attachment.id)

        assert result.error_codes() == [ErrorCodes.PARENT_DELETED]


class TestInventoryValidators:

    def test_material_in_use_warns(self, cascade, make, dept, member):
        material = make.material(dept)
        make.routine_task(member, materials=[material])

        result = cascade.validate_deletion(EntityKind.MATERIAL, material.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.MATERIAL_IN_USE]

    def test_material_duplicate_name_in_department(self, db_session, cascade, make, dept):
        old = make.material(dept, name="Cement")
        soft_delete(db_session, old, actor_id=None)
        make.material(dept, name="cement")

        result = cascade.validate_restoration(EntityKind.MATERIAL, old.id)

        assert result.error_codes() == [ErrorCodes.DUPLICATE_NAME]

    def test_material_deleted_creator_only_warns(self, db_session, cascade, make, dept, member):
        material = make.material(dept, created_by_id=member.id)
        soft_delete(db_session, member, actor_id=None)

        result = cascade.validate_restoration(EntityKind.MATERIAL, material.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.CREATED_BY_DELETED]

    def test_vendor_used_by_project_tasks(self, cascade, make, org, member):
        vendor = make.vendor(org)
        make.project_task(member, vendor)

        result = cascade.validate_deletion(EntityKind.VENDOR, vendor.id)

        assert result.warning_codes() == [ErrorCodes.VENDOR_USED_IN_PROJECT_TASKS]

    def test_vendor_duplicate_email(self, db_session, cascade, make, org):
        old = make.vendor(org, email="sales@acme.test")
        soft_delete(db_session, old, actor_id=None)
        make.vendor(org, email="sales@acme.test")

        result = cascade.validate_restoration(EntityKind.VENDOR, old.id)

        assert result.error_codes() == [ErrorCodes.DUPLICATE_EMAIL]


class TestNotificationValidator:

    def test_expired_notification_cannot_return(self, cascade, make, dept):
        notification = make.notification(dept, expires_at=utcnow() - timedelta(days=1))

        result = cascade.validate_restoration(EntityKind.NOTIFICATION, notification.id)

        assert result.error_codes() == [ErrorCodes.NOTIFICATION_EXPIRED]

    def test_expired_notification_delete_only_warns(self, cascade, make, dept):
        notification = make.notification(dept, expires_at=utcnow() - timedelta(days=1))

        result = cascade.validate_deletion(EntityKind.NOTIFICATION, notification.id)

        assert result.valid
        assert ErrorCodes.NOTIFICATION_EXPIRED in result.warning_codes()

    def test_subject_deleted_warns(self, db_session, cascade, make, dept, member):
        task = make.assigned_task(member, [member])
        notification = make.notification(dept, recipients=[member], about=task)
        soft_delete(db_session, task, actor_id=None)

        result = cascade.validate_restoration(EntityKind.NOTIFICATION, notification.id)

        assert result.valid
        assert result.warning_codes() == [ErrorCodes.ENTITY_DELETED]

    def test_recipient_from_other_department(self, cascade, make, org, dept):
        outsider = make.user(make.department(org))
        notification = make.notification(dept, recipients=[outsider])

        result = cascade.validate_restoration(EntityKind.NOTIFICATION, notification.id)

        assert result.error_codes() == [ErrorCodes.RECIPIENTS_WRONG_ORG_DEPT]
