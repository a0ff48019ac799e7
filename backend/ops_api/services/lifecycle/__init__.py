"""
Lifecycle engine: registry, validators, cascade engine and retention reaper.

Usage:
    from ops_api.services.lifecycle import get_cascade_engine, CascadeOptions

    engine = get_cascade_engine(db)
    preview = engine.validate_deletion(EntityKind.USER, user_id)
    result = engine.cascade_delete(EntityKind.USER, user_id, actor_id, CascadeOptions(force=True))
"""

from .registry import (
    REGISTRY,
    PARENT_MODELS,
    ChildRelation,
    EntityDescriptor,
    children_of,
    descriptor,
    kind_of,
    model_for,
    parent_kind_of,
)
from .results import CascadeOptions, CascadeResult, ErrorItem, ValidationResult
from .invariants import (
    ReferenceSplit,
    all_resolve,
    all_same_tenant,
    out_of_scope,
    partition_references,
    same_tenant,
    same_tenant_and_department,
    tenant_of,
)
from .store import LifecycleStore
from .validators import validator_for
from .cascade import CascadeEngine, get_cascade_engine
from .retention import PurgeReport, RetentionReaper

__all__ = [
    # Registry
    "REGISTRY",
    "PARENT_MODELS",
    "ChildRelation",
    "EntityDescriptor",
    "children_of",
    "descriptor",
    "kind_of",
    "model_for",
    "parent_kind_of",
    # Results
    "CascadeOptions",
    "CascadeResult",
    "ErrorItem",
    "ValidationResult",
    # Invariants
    "ReferenceSplit",
    "all_resolve",
    "all_same_tenant",
    "out_of_scope",
    "partition_references",
    "same_tenant",
    "same_tenant_and_department",
    "tenant_of",
    # Engine
    "LifecycleStore",
    "validator_for",
    "CascadeEngine",
    "get_cascade_engine",
    "RetentionReaper",
    "PurgeReport",
]
