"""Create the storage tables in the configured database.

Usage:
    python -m oncosafe.scripts.init_database

Idempotent: existing tables are left alone. Identity tables already owned
by the auth server are skipped for the same reason.
"""

import asyncio
import sys

from sqlalchemy import text

import oncosafe.models  # noqa: F401  (registers every table on Base.metadata)
from oncosafe.config import Settings, settings
from oncosafe.database import Base, create_engine_from_settings
from oncosafe.storage import StorageMode, resolve_storage_mode


async def init_database(config: Settings) -> list[str]:
    """Create missing tables.

    Returns:
        Names of the tables known to the metadata, in creation order.
    """
    engine = create_engine_from_settings(config)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print("  PostgreSQL: connected")

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()

    return [table.name for table in Base.metadata.sorted_tables]


def main() -> int:
    if resolve_storage_mode(settings) is not StorageMode.RELATIONAL:
        print("ERROR: DATABASE_URL and a storage key must be set (and storage not disabled)")
        return 1

    tables = asyncio.run(init_database(settings))
    print(f"  Tables ensured: {', '.join(tables)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
