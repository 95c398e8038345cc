"""
Unit tests for CatalogRepository.
"""

import asyncio
import uuid
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from shared.errors import DatabaseError
from shared.metrics import MetricsCollector
from service_catalog.app.catalog.models import ApiKey, Build, Modpack
from service_catalog.app.persistence.postgres import (
    CatalogRepository, SELECT_BUILD, SELECT_MODPACK, SELECT_MODS
)


class TestCatalogRepository:
    """Test cases for CatalogRepository."""

    @pytest.fixture
    def conn(self):
        conn = AsyncMock()
        conn.fetch.return_value = []
        return conn

    @pytest.fixture
    def pool(self, conn):
        pool = MagicMock()
        pool.acquire = AsyncMock(return_value=conn)
        pool.release = AsyncMock()
        pool.close = AsyncMock()
        return pool

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("catalog")

    @pytest.fixture
    def repository(self, pool, metrics):
        repository = CatalogRepository(
            "postgres://localhost:5432/solder_test",
            acquire_timeout=1.0,
            metrics=metrics,
        )
        repository.pool = pool
        return repository

    @pytest.mark.asyncio
    async def test_start_creates_pool(self):
        repository = CatalogRepository("postgres://localhost:5432/solder_test", max_size=50)

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=MagicMock())) as create_pool:
            await repository.start()

        create_pool.assert_awaited_once()
        assert create_pool.call_args.kwargs["max_size"] == 50
        assert repository.pool is not None

    @pytest.mark.asyncio
    async def test_start_tolerates_unreachable_database(self):
        repository = CatalogRepository("postgres://localhost:5432/solder_test")

        with patch("asyncpg.create_pool", new=AsyncMock(side_effect=OSError("refused"))):
            await repository.start()

            with pytest.raises(DatabaseError) as exc_info:
                await repository.fetch_modpacks()

        assert repository.pool is None
        assert exc_info.value.message == "Failed to start PostgreSQL pool"

    @pytest.mark.asyncio
    async def test_pool_created_on_first_query_after_outage(self, pool, conn):
        repository = CatalogRepository("postgres://localhost:5432/solder_test")
        create_pool = AsyncMock(side_effect=[OSError("refused"), pool])

        with patch("asyncpg.create_pool", new=create_pool):
            await repository.start()
            assert await repository.fetch_modpacks() == []

        assert create_pool.await_count == 2
        assert repository.pool is pool

    @pytest.mark.asyncio
    async def test_stop_closes_pool(self, repository, pool):
        await repository.stop()

        pool.close.assert_awaited_once()
        assert repository.pool is None

    @pytest.mark.asyncio
    async def test_pool_not_started(self):
        repository = CatalogRepository("postgres://localhost:5432/solder_test")

        with pytest.raises(DatabaseError) as exc_info:
            await repository.fetch_modpacks()

        assert exc_info.value.message == "PostgreSQL pool is not started"

    @pytest.mark.asyncio
    async def test_acquire_uses_timeout(self, repository, pool):
        await repository.fetch_keys()

        pool.acquire.assert_awaited_once_with(timeout=1.0)

    @pytest.mark.asyncio
    async def test_connection_released_after_query(self, repository, pool, conn):
        await repository.fetch_keys()

        pool.release.assert_awaited_once_with(conn)

    @pytest.mark.asyncio
    async def test_acquire_timeout_raises_database_error(self, repository, pool):
        pool.acquire.side_effect = asyncio.TimeoutError()

        with pytest.raises(DatabaseError) as exc_info:
            await repository.fetch_modpacks()

        assert exc_info.value.message == "Connection acquisition timed out"
        assert exc_info.value.status_code == 500
        pool.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_timeout_is_not_an_acquire_timeout(self, repository, pool, conn):
        conn.fetch.side_effect = asyncio.TimeoutError()

        with pytest.raises(DatabaseError) as exc_info:
            await repository.fetch_modpacks()

        assert exc_info.value.message == "Query timed out"
        pool.release.assert_awaited_once_with(conn)

    @pytest.mark.asyncio
    async def test_query_error_is_wrapped(self, repository, conn):
        conn.fetch.side_effect = RuntimeError("relation \"modpacks\" does not exist")

        with pytest.raises(DatabaseError) as exc_info:
            await repository.fetch_modpacks()

        assert exc_info.value.message == "Error running query"
        assert exc_info.value.details["query"] == "modpacks"

    @pytest.mark.asyncio
    async def test_fetch_keys(self, repository, conn):
        conn.fetch.return_value = [{"api_key": "secret-key-123"}, {"api_key": "other"}]

        assert await repository.fetch_keys() == ["secret-key-123", "other"]

    @pytest.mark.asyncio
    async def test_fetch_key(self, repository, conn):
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        conn.fetch.return_value = [
            {"api_key": "secret-key-123", "name": "Test Key", "created_at": created}
        ]

        key = await repository.fetch_key("secret-key-123")

        assert key == ApiKey(api_key="secret-key-123", name="Test Key", created_at=created)
        assert conn.fetch.call_args.args[1] == "secret-key-123"

    @pytest.mark.asyncio
    async def test_fetch_key_missing(self, repository):
        assert await repository.fetch_key("nope") is None

    @pytest.mark.asyncio
    async def test_fetch_clients_stringifies_uuids(self, repository, conn):
        client_uuid = uuid.UUID("12345678-1234-5678-1234-567812345678")
        conn.fetch.return_value = [{"uuid": client_uuid}]

        assert await repository.fetch_clients() == ["12345678-1234-5678-1234-567812345678"]

    @pytest.mark.asyncio
    async def test_fetch_client_grants(self, repository, conn):
        conn.fetch.return_value = [{"modpack_id": 7}, {"modpack_id": 9}]

        assert await repository.fetch_client_grants("client-uuid-1") == [7, 9]
        assert conn.fetch.call_args.args[1] == "client-uuid-1"

    @pytest.mark.asyncio
    async def test_fetch_modpack_is_parameterized(self, repository, conn):
        conn.fetch.return_value = [{
            "id": 7, "slug": "test", "name": "Test Pack", "recommended": "1.0",
            "latest": "1.0", "hidden": False, "private": True,
        }]

        pack = await repository.fetch_modpack("test'; DROP TABLE modpacks; --")

        query, slug = conn.fetch.call_args.args
        assert query == SELECT_MODPACK
        assert slug == "test'; DROP TABLE modpacks; --"
        assert isinstance(pack, Modpack)
        assert pack.private is True

    @pytest.mark.asyncio
    async def test_fetch_modpack_missing(self, repository):
        assert await repository.fetch_modpack("unknown") is None

    @pytest.mark.asyncio
    async def test_fetch_build(self, repository, conn):
        conn.fetch.return_value = [{
            "id": 70, "modpack_id": 7, "version": "1.0", "minecraft": "1.12.2", "forge": None,
            "min_java": "1.8", "min_memory": 3072, "is_published": True, "private": True,
        }]

        build = await repository.fetch_build(7, "1.0")

        assert conn.fetch.call_args.args == (SELECT_BUILD, 7, "1.0")
        assert isinstance(build, Build)
        assert build.min_memory == 3072

    @pytest.mark.asyncio
    async def test_fetch_mods(self, repository, conn):
        conn.fetch.return_value = [
            {"id": 1, "name": "bar", "version": "0.1", "md5": "x", "filesize": None,
             "pretty_name": "Bar", "author": None, "description": None, "link": None},
        ]

        mods = await repository.fetch_mods(10)

        assert conn.fetch.call_args.args == (SELECT_MODS, 10)
        assert [mod.name for mod in mods] == ["bar"]

    @pytest.mark.asyncio
    async def test_query_timing_recorded(self, repository, metrics):
        await repository.fetch_builds(7)

        count = metrics.registry.get_sample_value(
            "database_query_duration_seconds_count", {"query": "builds"}
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_health_check(self, repository, conn):
        assert await repository.health_check() is True

        conn.fetch.side_effect = RuntimeError("connection lost")
        assert await repository.health_check() is False
