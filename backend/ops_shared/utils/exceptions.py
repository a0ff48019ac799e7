"""
HTTP-aware exceptions for write-time guards and infrastructure faults.

Lifecycle rule failures are never raised: they come back as
ValidationResult / CascadeResult values. What is raised here is a broken
contract: an unknown id, a physical delete of a tombstonable row, a
reference that escapes its tenant, a duplicate among live rows.

Every exception logs itself once, when constructed.
"""

from typing import Any

from fastapi import HTTPException, status

from ops_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """Base class; subclasses pick the status code and log level."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    log_level: str = "warning"

    def __init__(self, detail: str, **log_context: Any):
        self.log_context = log_context
        getattr(logger, self.log_level)(detail, status_code=self.status_code_default, **log_context)
        super().__init__(status_code=self.status_code_default, detail=detail)


class NotFoundError(AppException):
    """No live (or, where asked, any) row of that kind has this id."""

    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        detail = f"{entity} {entity_id} not found" if entity_id is not None else f"{entity} not found"
        super().__init__(detail, entity=entity, entity_id=entity_id, **log_context)


class DirectDeletionForbidden(AppException):
    """
    A tombstonable row was about to be physically deleted.

    Rows are tombstoned by soft_delete or the cascade engine and removed
    only by the retention reaper.
    """

    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, entity: str, **log_context: Any):
        self.entity = entity
        super().__init__(
            f"{entity} rows cannot be physically deleted; use soft_delete or a cascade",
            entity=entity,
            **log_context,
        )


class ValidationError(AppException):
    """A write was rejected by a guard (400)."""

    status_code_default = status.HTTP_400_BAD_REQUEST


class ScopeViolationError(ValidationError):
    """A reference points outside the organization or department of its owner."""

    def __init__(self, entity: str, reference: str, ids: list[int] | None = None, **log_context: Any):
        super().__init__(
            f"{entity} references {reference} outside its organization or department",
            entity=entity,
            reference=reference,
            ids=ids,
            **log_context,
        )


class DuplicateEntityError(ValidationError):
    """The value is already taken by a live row in the same scope."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        detail = f"{entity} '{identifier}' already exists" if identifier else f"{entity} already exists"
        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


class DatabaseError(AppException):
    """A commit failed; the session was rolled back."""

    log_level = "error"

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(f"Database error during {operation}", operation=operation, **log_context)
