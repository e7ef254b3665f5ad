"""Concrete collaborators: entity store, result sink, lookups, permissions."""

from aegis_core.adapters.lookups import StoreAssessmentLookup, StoreKnowledgeLookup
from aegis_core.adapters.memory_store import EntityStoreResultSink, InMemoryEntityStore
from aegis_core.adapters.permissions import (
    HTTPPermissionChecker,
    PermissionDecision,
    RoleBasedPermissionChecker,
)

__all__ = [
    "EntityStoreResultSink",
    "HTTPPermissionChecker",
    "InMemoryEntityStore",
    "PermissionDecision",
    "RoleBasedPermissionChecker",
    "StoreAssessmentLookup",
    "StoreKnowledgeLookup",
]
