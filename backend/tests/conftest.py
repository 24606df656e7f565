"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- Settings built without reading the developer's .env
- A fake async session factory standing in for PostgreSQL
- HTTP client for API testing against the in-memory store
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects import postgresql

from oncosafe.config import Settings
from oncosafe.main import create_app
from oncosafe.storage import NoOpStore, RelationalStore
from oncosafe.storage.identity import IdentityStore

TEST_USER_ID = "3f1c2d4e-5a6b-4c7d-8e9f-0a1b2c3d4e5f"


def make_settings(**overrides: Any) -> Settings:
    """Settings with every storage field pinned, ignoring .env and the environment."""
    values: dict[str, Any] = {
        "database_url": "",
        "service_role_key": "",
        "anon_key": "",
        "storage_disabled": False,
        "storage_force_disabled": False,
        "storage_force_enabled": False,
        "environment": "development",
        "privileged_override_email": "",
        "hard_delete_settle_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# =============================================================================
# Fake database
# =============================================================================


def make_result(
    rows: list[dict[str, Any]] | None = None,
    rowcount: int | None = None,
    scalar: Any = None,
) -> MagicMock:
    """Stand-in for a SQLAlchemy ``Result``."""
    rows = [dict(row) for row in rows or []]
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows
    result.mappings.return_value.first.return_value = rows[0] if rows else None
    result.rowcount = len(rows) if rowcount is None else rowcount
    result.scalar.return_value = scalar
    return result


def target_of(statement) -> str:
    """Name of the table a statement writes to or selects from."""
    table = getattr(statement, "table", None)
    if table is not None:
        return table.name
    source = statement.get_final_froms()[0]
    while hasattr(source, "left"):  # join: report the driving table
        source = source.left
    return source.name


def sql_of(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


class FakeSession:
    def __init__(self, database: "FakeDatabase"):
        self._database = database

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False

    async def execute(self, statement, *args, **kwargs):
        return await self._database.execute(statement)

    async def commit(self) -> None:
        self._database.commits += 1

    async def rollback(self) -> None:
        self._database.rollbacks += 1


class FakeDatabase:
    """Records executed statements and replays queued outcomes in order.

    An outcome is either a result (see ``make_result``) or an exception to
    raise. Once the queue is empty every statement gets an empty result.
    """

    def __init__(self):
        self.outcomes: list[Any] = []
        self.statements: list[Any] = []
        self.commits = 0
        self.rollbacks = 0

    def queue(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    async def execute(self, statement):
        self.statements.append(statement)
        outcome = self.outcomes.pop(0) if self.outcomes else make_result()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def session_factory(self) -> FakeSession:
        return FakeSession(self)

    @property
    def targets(self) -> list[str]:
        return [target_of(statement) for statement in self.statements]


class FakeDriverError(Exception):
    """Driver exception carrying a SQLSTATE, as asyncpg's adapted errors do."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def relational_store(fake_db) -> RelationalStore:
    """Relational store wired to the fake database, with identity cleanup."""
    return RelationalStore(
        fake_db.session_factory,
        identity=IdentityStore(fake_db.session_factory),
    )


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest.fixture
def noop_store() -> NoOpStore:
    return NoOpStore()


@pytest_asyncio.fixture
async def client(noop_store):
    """Async test client for the app backed by the in-memory store.

    Runs the application lifespan so ``app.state`` is populated the same way
    as in production.
    """
    app = create_app(settings=make_settings(), store=noop_store)
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
