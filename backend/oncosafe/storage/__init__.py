"""Dual-mode persistence: PostgreSQL when configured, in-memory otherwise."""

from oncosafe.storage.base import DeleteResult, StorageService, normalize_patient
from oncosafe.storage.errors import StorageError, StorageWriteError
from oncosafe.storage.factory import create_storage
from oncosafe.storage.noop import NoOpStore
from oncosafe.storage.policies import NoRoleOverride, PinnedRoleOverride, RoleOverridePolicy
from oncosafe.storage.relational import RelationalStore
from oncosafe.storage.resolver import StorageMode, resolve_storage_mode, should_use_relational

__all__ = [
    "DeleteResult",
    "NoOpStore",
    "NoRoleOverride",
    "PinnedRoleOverride",
    "RelationalStore",
    "RoleOverridePolicy",
    "StorageError",
    "StorageMode",
    "StorageService",
    "StorageWriteError",
    "create_storage",
    "normalize_patient",
    "resolve_storage_mode",
    "should_use_relational",
]
