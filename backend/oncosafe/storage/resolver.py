"""Storage mode decision.

Absence of configuration is a normal outcome here, never an error.
"""

import enum
import logging

from oncosafe.config import Settings

logger = logging.getLogger(__name__)


class StorageMode(str, enum.Enum):
    RELATIONAL = "relational"
    NOOP = "noop"


def resolve_storage_mode(settings: Settings) -> StorageMode:
    """Pick the store implementation for this process.

    Priority:
        1. ``storage_force_disabled`` always selects the no-op store.
        2. In production (or with ``storage_force_enabled``), a URL plus any
           credential selects the relational store even if the soft
           ``storage_disabled`` flag is set.
        3. Otherwise the relational store needs a URL, a credential and no
           soft disable flag.
    """
    has_url = bool(settings.database_url.strip())
    has_credential = bool(settings.storage_credential)
    configured = has_url and has_credential

    if settings.storage_force_disabled:
        logger.info("Storage forced off; using in-memory store")
        return StorageMode.NOOP

    if configured and (settings.is_production or settings.storage_force_enabled):
        if settings.storage_disabled:
            logger.warning("STORAGE_DISABLED ignored: credentials are configured for %s", settings.environment)
        return StorageMode.RELATIONAL

    if configured and not settings.storage_disabled:
        return StorageMode.RELATIONAL

    if settings.storage_disabled:
        logger.info("Storage disabled; using in-memory store")
    else:
        logger.info(
            "Storage not configured (url=%s, credential=%s); using in-memory store",
            has_url,
            has_credential,
        )
    return StorageMode.NOOP


def should_use_relational(settings: Settings) -> bool:
    return resolve_storage_mode(settings) is StorageMode.RELATIONAL
