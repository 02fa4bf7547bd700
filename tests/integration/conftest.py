import asyncio
import os
import uuid
from collections.abc import Awaitable, Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

import medvault.database as database_package
from medvault.config.settings import Settings
from medvault.database.connection import build_conninfo, close_pool, init_pool

SCHEMA_PATH = Path(next(iter(database_package.__path__))) / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "medvault_test")
    return Settings()


def _purge_owner(settings: Settings, owner_id: str) -> None:
    with psycopg.connect(build_conninfo(settings), autocommit=True) as conn:
        conn.execute("DELETE FROM medical_records WHERE user_id = %s", (owner_id,))
        conn.execute("DELETE FROM logs WHERE user_id = %s", (owner_id,))
        conn.execute("DELETE FROM medical_summaries WHERE user_id = %s", (owner_id,))


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Settings:
    """Apply the schema once per session; skip when PostgreSQL is unreachable."""
    try:
        with psycopg.connect(build_conninfo(test_settings), autocommit=True) as conn:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))  # type: ignore[arg-type]
    except psycopg.OperationalError as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    return test_settings


@pytest.fixture
def owner_id(database: Settings) -> Generator[str, None, None]:
    owner = f"it-{uuid.uuid4()}"
    yield owner
    _purge_owner(database, owner)


@pytest.fixture
def other_owner_id(database: Settings) -> Generator[str, None, None]:
    owner = f"it-other-{uuid.uuid4()}"
    yield owner
    _purge_owner(database, owner)


@pytest.fixture
def run_with_pool(database: Settings) -> Callable[[Callable[[], Awaitable[Any]]], Any]:
    """Run an async scenario on a fresh loop with the connection pool open.

    The pool is bound to the loop that opened it, so each scenario owns
    both.
    """

    def _run(scenario: Callable[[], Awaitable[Any]]) -> Any:
        async def _wrapper() -> Any:
            await init_pool(database)
            try:
                return await scenario()
            finally:
                await close_pool()

        return asyncio.run(_wrapper())

    return _run


@pytest.fixture
def db_conn(database: Settings) -> Generator[psycopg.Connection[Any], None, None]:
    with psycopg.connect(build_conninfo(database)) as conn:
        yield conn
