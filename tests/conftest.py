"""
Pytest configuration for the domain existence service.

Provides fixtures for:
- Isolating settings from the developer's environment
- Database connection management for integration tests
- Creating and seeding the lookup tables used by the scenarios
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from domain_exists.config import get_settings
from domain_exists.domain.models import TableColumn

_SETTINGS_ENV = (
    "CONFIG",
    "CONFIG_PATH",
    "HOST",
    "LOG_LEVEL",
    "LOG_JSON",
    "POOL_MIN_SIZE",
    "POOL_MAX_SIZE",
    "DB_STATEMENT_TIMEOUT_MS",
)

SCENARIO_TABLES = [
    TableColumn(table_name="users", column="domain"),
    TableColumn(table_name="blocked", column="domain"),
]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch) -> Generator[None, None, None]:
    """
    Clear service environment variables and the cached Settings per test.
    """
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_dsn() -> str:
    """
    Database connection string for integration tests.
    """
    if os.getenv("TEST_POSTGRES_URI"):
        return os.environ["TEST_POSTGRES_URI"]
    return (
        f"postgresql://{os.getenv('DB_USER', 'postgres')}:{os.getenv('DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('DB_HOST', 'localhost')}:{os.getenv('DB_PORT', '5432')}"
        f"/{os.getenv('DB_NAME', 'domain_exists')}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="function")
def scenario_tables(test_dsn: str, db_connection_available: bool) -> list[TableColumn]:
    """
    Empty `users` and `blocked` tables, then put `test.com` in `blocked` only.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    from scripts.seed_tables import seed

    seed(test_dsn, SCENARIO_TABLES, {"blocked": ["test.com"]}, truncate=True)
    return SCENARIO_TABLES
