import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import psycopg
import pytest
from psycopg import sql
from psycopg_pool import PoolTimeout

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool
from app.database.exceptions import StorageError
from app.database.repositories.documents_repository import DocumentsRepository
from app.database.repositories.scraped_content_repository import ScrapedContentRepository

DOCUMENTS_TABLE = "documents_integration"
SCRAPED_TABLE = "scraped_content_integration"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "agent_hub_test")
    return Settings(db_fallback_enabled=True)


def _failing_rest() -> MagicMock:
    """REST client whose every call fails, so repositories take the SQL path."""
    rest = MagicMock()
    rest.table_exists.return_value = True
    error = StorageError("REST unavailable in integration tests")
    rest.select.side_effect = error
    rest.insert.side_effect = error
    rest.delete.side_effect = error
    return rest


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute("SELECT 1")
    except (psycopg.OperationalError, PoolTimeout) as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def documents_repo(integration_pool: None) -> Generator[DocumentsRepository, None, None]:
    repo = DocumentsRepository(_failing_rest(), table=DOCUMENTS_TABLE, sql_fallback=True)
    repo.create_table()
    try:
        yield repo
    finally:
        _drop(DOCUMENTS_TABLE)


@pytest.fixture
def scraped_repo(integration_pool: None) -> Generator[ScrapedContentRepository, None, None]:
    with get_connection() as conn:
        conn.execute(
            sql.SQL(
                """
                CREATE TABLE IF NOT EXISTS {table} (
                    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    url TEXT NOT NULL,
                    mode TEXT NOT NULL,
                    content JSONB,
                    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
                )
                """
            ).format(table=sql.Identifier(SCRAPED_TABLE))
        )
        conn.commit()
    try:
        yield ScrapedContentRepository(_failing_rest(), table=SCRAPED_TABLE, sql_fallback=True)
    finally:
        _drop(SCRAPED_TABLE)


def _drop(table: str) -> None:
    with get_connection() as conn:
        conn.execute(sql.SQL("DROP TABLE IF EXISTS {table}").format(table=sql.Identifier(table)))
        conn.commit()
