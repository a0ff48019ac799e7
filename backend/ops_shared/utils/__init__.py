"""
Utilities module: exceptions.
"""

from ops_shared.utils.exceptions import (
    AppException,
    NotFoundError,
    DirectDeletionForbidden,
    ValidationError,
    ScopeViolationError,
    DuplicateEntityError,
    DatabaseError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "DirectDeletionForbidden",
    "ValidationError",
    "ScopeViolationError",
    "DuplicateEntityError",
    "DatabaseError",
]
