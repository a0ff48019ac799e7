"""
CRUD Services - tombstone-aware data access.

Provides:
- Repository Pattern: typed data access with tombstone policy and tenant isolation
- Soft Delete Core: idempotent single-record and bulk tombstone transitions
"""

from .repository import TombstoneRepository, TenantRepository
from .soft_delete import (
    Transition,
    soft_delete,
    restore_entity,
    soft_delete_by_id,
    restore_by_id,
    soft_delete_many,
    restore_many,
    find_active_entity,
    find_deleted_entity,
    find_any_entity,
    filter_by_state,
)

__all__ = [
    # Repository Pattern
    "TombstoneRepository",
    "TenantRepository",
    # Soft delete
    "Transition",
    "soft_delete",
    "restore_entity",
    "soft_delete_by_id",
    "restore_by_id",
    "soft_delete_many",
    "restore_many",
    "find_active_entity",
    "find_deleted_entity",
    "find_any_entity",
    "filter_by_state",
]
