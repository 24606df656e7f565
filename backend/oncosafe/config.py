"""Application configuration using pydantic-settings."""

import warnings
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# Environments in which configured credentials override the soft disable flag
PRODUCTION_ENVIRONMENTS = frozenset({"production", "prod"})

# Find .env file: check backend dir first, then project root
_BACKEND_DIR = Path(__file__).parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _BACKEND_DIR / ".env" if (_BACKEND_DIR / ".env").exists() else _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Every storage-related value is optional. Missing credentials are an
    expected configuration (local dev, CI, demo) and select the in-memory
    store instead of failing at startup.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Hosted PostgreSQL connection (e.g. postgresql+asyncpg://postgres@db.host:5432/postgres)
    database_url: str = ""

    # Credential tiers, elevated first
    service_role_key: str = ""
    anon_key: str = ""

    # Storage mode overrides
    storage_disabled: bool = False
    storage_force_disabled: bool = False
    storage_force_enabled: bool = False

    environment: str = "development"

    # Role pinned for one account on every read; empty string disables the override
    privileged_override_email: str = "support@oncosaferx.com"
    privileged_override_role: str = "super_admin"

    # sync_logs kind column: current name, then the name used by older deployments
    sync_log_type_column: str = "sync_type"
    sync_log_legacy_type_column: str = "source"

    # Pause before the user row is removed in a hard delete
    hard_delete_settle_seconds: float = 0.5

    # Whether the auth server's identity tables share this database
    external_identity: bool = True

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Application
    debug: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def storage_credential(self) -> str:
        """Service credential when present, otherwise the anonymous one."""
        return self.service_role_key or self.anon_key

    def model_post_init(self, __context) -> None:
        """Warn about risky storage configurations."""
        if self.is_production and not (self.database_url and self.storage_credential):
            warnings.warn(
                "ENVIRONMENT is production but DATABASE_URL or a storage key is missing; "
                "data will only be kept in memory.",
                UserWarning,
                stacklevel=2,
            )
        if self.storage_force_disabled and self.storage_force_enabled:
            warnings.warn(
                "STORAGE_FORCE_DISABLED and STORAGE_FORCE_ENABLED are both set; "
                "STORAGE_FORCE_DISABLED wins.",
                UserWarning,
                stacklevel=2,
            )


settings = Settings()
