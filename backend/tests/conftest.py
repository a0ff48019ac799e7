"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Point the application engine at SQLite before anything imports it
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import itertools
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ops_api.main import app
from ops_api.models import (
    AssignedTask,
    Attachment,
    Base,
    Department,
    Material,
    Notification,
    Organization,
    ParentKind,
    ProjectTask,
    RoutineTask,
    RoutineTaskMaterial,
    TaskActivity,
    TaskComment,
    User,
    Vendor,
    utcnow,
)
from ops_api.services.lifecycle import get_cascade_engine
from ops_shared.config.constants import Roles
from ops_shared.infrastructure.db import get_db


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def cascade(db_session):
    """Cascade engine over the test session."""
    return get_cascade_engine(db_session)


@pytest.fixture
def reload(db_session):
    """Re-read an entity's columns from the database, whatever its tombstone state."""
    def _reload(entity):
        db_session.refresh(entity)
        return entity
    return _reload


class EntityFactory:
    """
    Builds entities directly through the ORM, bypassing write services.

    Every call flushes so ids are available; names are unique per factory.
    """

    def __init__(self, db):
        self.db = db
        self._seq = itertools.count(1)

    def _n(self) -> int:
        return next(self._seq)

    def _add(self, entity):
        self.db.add(entity)
        self.db.flush()
        return entity

    def organization(self, **kw):
        n = self._n()
        kw.setdefault("name", f"Org {n}")
        kw.setdefault("email", f"org{n}@ops.test")
        return self._add(Organization(**kw))

    def department(self, org, **kw):
        kw.setdefault("name", f"Dept {self._n()}")
        return self._add(Department(organization_id=org.id, **kw))

    def user(self, dept, **kw):
        n = self._n()
        kw.setdefault("first_name", "User")
        kw.setdefault("last_name", str(n))
        kw.setdefault("email", f"user{n}@ops.test")
        kw.setdefault("role", Roles.USER)
        return self._add(User(organization_id=dept.organization_id, department_id=dept.id, **kw))

    def vendor(self, org, **kw):
        kw.setdefault("name", f"Vendor {self._n()}")
        return self._add(Vendor(organization_id=org.id, **kw))

    def material(self, dept, **kw):
        kw.setdefault("name", f"Material {self._n()}")
        return self._add(Material(organization_id=dept.organization_id, department_id=dept.id, **kw))

    def _task_fields(self, creator, kw):
        kw.setdefault("title", f"Task {self._n()}")
        kw.setdefault("organization_id", creator.organization_id)
        kw.setdefault("department_id", creator.department_id)
        kw.setdefault("created_by_id", creator.id)
        return kw

    def project_task(self, creator, vendor, watchers=(), **kw):
        task = ProjectTask(vendor_id=vendor.id, **self._task_fields(creator, kw))
        task.watchers = list(watchers)
        return self._add(task)

    def routine_task(self, creator, materials=(), watchers=(), **kw):
        task = RoutineTask(**self._task_fields(creator, kw))
        task.material_lines = [RoutineTaskMaterial(material_id=m.id, quantity=1) for m in materials]
        task.watchers = list(watchers)
        return self._add(task)

    def assigned_task(self, creator, assignees, watchers=(), **kw):
        task = AssignedTask(**self._task_fields(creator, kw))
        task.assignees = list(assignees)
        task.watchers = list(watchers)
        return self._add(task)

    def activity(self, task, creator, **kw):
        kw.setdefault("description", f"Activity {self._n()}")
        return self._add(TaskActivity(
            task_id=task.id,
            organization_id=task.organization_id,
            department_id=task.department_id,
            created_by_id=creator.id,
            **kw,
        ))

    def comment(self, parent, creator, mentions=(), **kw):
        if isinstance(parent, TaskComment):
            parent_kind, depth = ParentKind.TASK_COMMENT, parent.depth + 1
        elif isinstance(parent, TaskActivity):
            parent_kind, depth = ParentKind.TASK_ACTIVITY, 1
        else:
            parent_kind, depth = ParentKind.TASK, 1
        kw.setdefault("depth", depth)
        kw.setdefault("content", f"Comment {self._n()}")
        comment = TaskComment(
            parent_kind=parent_kind,
            parent_id=parent.id,
            organization_id=parent.organization_id,
            department_id=parent.department_id,
            created_by_id=creator.id,
            **kw,
        )
        comment.mentions = list(mentions)
        return self._add(comment)

    def attachment(self, parent, uploader, parent_kind=ParentKind.TASK, **kw):
        kw.setdefault("filename", f"file{self._n()}.pdf")
        kw.setdefault("file_url", "https://files.ops.test/f.pdf")
        return self._add(Attachment(
            parent_kind=parent_kind,
            parent_id=parent.id,
            organization_id=parent.organization_id,
            department_id=parent.department_id,
            uploaded_by_id=uploader.id,
            **kw,
        ))

    def notification(self, dept, recipients=(), about=None, **kw):
        kw.setdefault("title", f"Notice {self._n()}")
        kw.setdefault("message", "Something happened")
        notification = Notification(
            organization_id=dept.organization_id,
            department_id=dept.id,
            **kw,
        )
        if about is not None:
            from ops_api.services.lifecycle import kind_of

            notification.entity_kind = kind_of(about)
            notification.entity_id = about.id
        notification.recipients = list(recipients)
        return self._add(notification)

    def age_tombstone(self, entity, days: int):
        """Backdate an entity's deletion stamp."""
        entity.deleted_at = utcnow() - timedelta(days=days)
        self.db.flush()
        return entity


@pytest.fixture
def make(db_session):
    """Entity factory bound to the test session."""
    return EntityFactory(db_session)


@pytest.fixture
def seed_org(make):
    """Organization with one department, a SuperAdmin and an Admin HOD."""
    org = make.organization()
    dept = make.department(org)
    super_admin = make.user(dept, role=Roles.SUPER_ADMIN)
    hod = make.user(dept, role=Roles.ADMIN, is_hod=True)
    dept.manager_id = hod.id
    make.db.commit()
    return {"org": org, "dept": dept, "super_admin": super_admin, "hod": hod}
