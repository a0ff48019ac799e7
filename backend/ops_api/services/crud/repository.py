"""
Repository Pattern for database access.

Provides a clean abstraction layer between business logic and data access,
with tombstone-aware reads and multi-tenant isolation.

Usage:
    from ops_api.services.crud.repository import (
        TombstoneRepository,
        TenantRepository,
    )

    user_repo = TenantRepository(User, db)
    users = user_repo.find_all(organization_id=1)
    user = user_repo.find_by_id(42, organization_id=1)
    deleted = user_repo.find_all(organization_id=1, only_tombstoned=True)

    # Arbitrary criteria, live rows only
    task_repo = TombstoneRepository(Task, db)
    open_tasks = task_repo.find_where(Task.department_id == 5)
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ops_api.models import Tombstonable
from ops_shared.utils.exceptions import DirectDeletionForbidden

from .soft_delete import filter_by_state

ModelT = TypeVar("ModelT", bound=Tombstonable)


class TombstoneRepository(Generic[ModelT]):
    """
    Base repository for tombstonable entities.

    Every read states its tombstone policy explicitly: live rows by default,
    ``include_tombstoned`` for all rows, ``only_tombstoned`` for deleted rows.
    Physical deletion is not offered.
    """

    def __init__(self, model: type[ModelT], session: Session):
        self._model = model
        self._session = session

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    def _base_query(self) -> Select:
        """Create base select query."""
        return select(self._model)

    def _apply_state_filter(
        self,
        query: Select,
        include_tombstoned: bool,
        only_tombstoned: bool = False,
    ) -> Select:
        """Apply the tombstone policy as explicit criteria."""
        return filter_by_state(
            query,
            self._model,
            include_tombstoned=include_tombstoned,
            only_tombstoned=only_tombstoned,
        )

    def _apply_options(
        self, query: Select, options: list[Any] | None
    ) -> Select:
        """Apply eager loading options."""
        if options:
            query = query.options(*options)
        return query

    def find_by_id(
        self,
        entity_id: int,
        *,
        options: list[Any] | None = None,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
    ) -> ModelT | None:
        """
        Find entity by primary key.

        Args:
            entity_id: The primary key value.
            options: SQLAlchemy loader options (selectinload, joinedload).
            include_tombstoned: Include soft-deleted entities.
            only_tombstoned: Return the entity only if it is soft-deleted.

        Returns:
            Entity or None if not found.
        """
        query = self._base_query().where(self._model.id == entity_id)
        query = self._apply_state_filter(query, include_tombstoned, only_tombstoned)
        query = self._apply_options(query, options)
        return self._session.scalar(query)

    def find_many(
        self,
        entity_ids: Iterable[int],
        *,
        include_tombstoned: bool = False,
    ) -> Sequence[ModelT]:
        """Find all entities whose id is in entity_ids."""
        ids = list(entity_ids)
        if not ids:
            return []
        query = self._base_query().where(self._model.id.in_(ids))
        query = self._apply_state_filter(query, include_tombstoned)
        return self._session.scalars(query).all()

    def find_where(
        self,
        *criteria: Any,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """Find entities matching arbitrary SQL criteria."""
        query = self._base_query().where(*criteria)
        query = self._apply_state_filter(query, include_tombstoned, only_tombstoned)
        query = query.order_by(order_by if order_by is not None else self._model.id)
        return self._session.scalars(query).all()

    def find_all(
        self,
        *,
        options: list[Any] | None = None,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """
        Find all entities.

        Args:
            options: SQLAlchemy loader options.
            include_tombstoned: Include soft-deleted entities.
            only_tombstoned: Only soft-deleted entities.
            limit: Maximum number of results.
            offset: Number of results to skip.
            order_by: Column or expression to order by.

        Returns:
            Sequence of entities.
        """
        query = self._base_query()
        query = self._apply_state_filter(query, include_tombstoned, only_tombstoned)
        query = self._apply_options(query, options)

        if order_by is not None:
            query = query.order_by(order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return self._session.scalars(query).all()

    def count(
        self,
        *criteria: Any,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
    ) -> int:
        """Count entities matching criteria (live rows unless told otherwise)."""
        query = select(func.count(self._model.id)).where(*criteria)
        query = self._apply_state_filter(query, include_tombstoned, only_tombstoned)
        return self._session.scalar(query) or 0

    def find_deleted(self, *criteria: Any) -> Sequence[ModelT]:
        """Find tombstoned entities matching criteria, most recently deleted first."""
        return self.find_where(
            *criteria, only_tombstoned=True, order_by=self._model.deleted_at.desc()
        )

    def exists(self, entity_id: int, *, include_tombstoned: bool = False) -> bool:
        """Check if entity exists by ID."""
        return self.count(self._model.id == entity_id, include_tombstoned=include_tombstoned) > 0

    def add(self, entity: ModelT) -> ModelT:
        """Add entity to session (not committed)."""
        self._session.add(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        """Physical deletion is never allowed through a repository."""
        raise DirectDeletionForbidden(
            self._model.__name__, entity_id=getattr(entity, "id", None)
        )

    def refresh(self, entity: ModelT) -> ModelT:
        """Refresh entity from database."""
        self._session.refresh(entity)
        return entity


class TenantRepository(TombstoneRepository[ModelT]):
    """
    Repository with automatic multi-tenant isolation.

    All queries are filtered by organization_id. The model must have an
    ``organization_id`` column.

    Usage:
        repo = TenantRepository(Department, db)
        departments = repo.find_all(organization_id=1)
    """

    def _tenant_query(self, organization_id: int) -> Select:
        """Create tenant-filtered base query."""
        if not hasattr(self._model, "organization_id"):
            raise AttributeError(
                f"Model {self._model.__name__} does not have organization_id column. "
                "Use TombstoneRepository instead."
            )
        return self._base_query().where(self._model.organization_id == organization_id)

    def find_by_id(
        self,
        entity_id: int,
        organization_id: int,
        *,
        options: list[Any] | None = None,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
    ) -> ModelT | None:
        """Find entity by ID within the organization."""
        query = self._tenant_query(organization_id).where(self._model.id == entity_id)
        query = self._apply_state_filter(query, include_tombstoned, only_tombstoned)
        query = self._apply_options(query, options)
        return self._session.scalar(query)

    def find_all(
        self,
        organization_id: int,
        *,
        options: list[Any] | None = None,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """Find all entities of the organization."""
        query = self._tenant_query(organization_id)
        query = self._apply_state_filter(query, include_tombstoned, only_tombstoned)
        query = self._apply_options(query, options)

        if order_by is not None:
            query = query.order_by(order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return self._session.scalars(query).all()

    def count_in_tenant(
        self,
        organization_id: int,
        *criteria: Any,
        include_tombstoned: bool = False,
        only_tombstoned: bool = False,
    ) -> int:
        """Count entities of the organization matching criteria."""
        return self.count(
            self._model.organization_id == organization_id,
            *criteria,
            include_tombstoned=include_tombstoned,
            only_tombstoned=only_tombstoned,
        )
