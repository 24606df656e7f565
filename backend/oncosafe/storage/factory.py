"""Builds the storage service for a process.

Called once from the application lifespan; the result is kept on
``app.state.storage`` and injected into routes.
"""

import logging

from oncosafe.config import Settings
from oncosafe.storage.base import StorageService
from oncosafe.storage.noop import NoOpStore
from oncosafe.storage.policies import RoleOverridePolicy, role_override_from_settings
from oncosafe.storage.relational import RelationalStore
from oncosafe.storage.resolver import StorageMode, resolve_storage_mode

logger = logging.getLogger(__name__)


def create_storage(settings: Settings, *, policy: RoleOverridePolicy | None = None) -> StorageService:
    """Resolve the storage mode and construct the matching store.

    A relational store that cannot be constructed (bad URL, missing driver)
    falls back to the in-memory store rather than failing startup.
    """
    role_override = policy if policy is not None else role_override_from_settings(settings)
    mode = resolve_storage_mode(settings)

    if mode is StorageMode.RELATIONAL:
        try:
            store = RelationalStore.from_settings(settings, role_override=role_override)
        except Exception:
            logger.exception("Could not initialise relational storage; falling back to in-memory store")
        else:
            logger.info("Storage mode: relational")
            return store

    if settings.is_production:
        logger.warning("Storage mode: in-memory in %s; data will not survive a restart", settings.environment)
    else:
        logger.info("Storage mode: in-memory")
    return NoOpStore(role_override=role_override)
