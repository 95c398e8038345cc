"""
Shared pytest fixtures for the catalog service.
"""

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from shared.config import CatalogConfig
from shared.errors import DatabaseError
from shared.test_helpers import CatalogDataFactory, InMemoryRedis, TestEnvironment
from service_catalog.app.catalog.models import ApiKey, Build, Mod, Modpack
from service_catalog.app.main import CatalogService


class InMemoryCatalogRepository:
    """Repository double backed by CatalogDataFactory data.

    Records every call so tests can tell cache hits from database reads.
    Setting ``fail_on`` to a method name makes that method raise DatabaseError.
    """

    def __init__(self):
        self.modpacks = [Modpack(**row) for row in CatalogDataFactory.create_test_modpacks()]
        self.builds = [Build(**row) for row in CatalogDataFactory.create_test_builds()]
        self.mods = {
            build_id: [Mod(**row) for row in rows]
            for build_id, rows in CatalogDataFactory.create_test_mods().items()
        }
        self.keys = [ApiKey(**row) for row in CatalogDataFactory.create_test_keys()]
        self.clients = CatalogDataFactory.create_test_clients()
        self.calls: List[str] = []
        self.fail_on: Optional[str] = None

    def _record(self, name: str):
        self.calls.append(name)
        if self.fail_on == name:
            raise DatabaseError("Error running query", {"query": name})

    async def fetch_keys(self):
        self._record("fetch_keys")
        return [key.api_key for key in self.keys]

    async def fetch_key(self, api_key: str):
        self._record("fetch_key")
        return next((key for key in self.keys if key.api_key == api_key), None)

    async def fetch_clients(self):
        self._record("fetch_clients")
        return list(self.clients)

    async def fetch_client_grants(self, client_uuid: str):
        self._record("fetch_client_grants")
        return sorted(self.clients.get(client_uuid, []))

    async def fetch_modpacks(self):
        self._record("fetch_modpacks")
        return sorted(self.modpacks, key=lambda pack: pack.id)

    async def fetch_modpack(self, slug: str):
        self._record("fetch_modpack")
        return next((pack for pack in self.modpacks if pack.slug == slug), None)

    async def fetch_builds(self, modpack_id: int):
        self._record("fetch_builds")
        return sorted((b for b in self.builds if b.modpack_id == modpack_id), key=lambda b: b.id)

    async def fetch_build(self, modpack_id: int, version: str):
        self._record("fetch_build")
        return next(
            (b for b in self.builds if b.modpack_id == modpack_id and b.version == version), None
        )

    async def fetch_mods(self, build_id: int):
        self._record("fetch_mods")
        return sorted(self.mods.get(build_id, []), key=lambda mod: mod.name)

    async def health_check(self) -> bool:
        return self.fail_on is None


@pytest.fixture
def catalog_config():
    """Configuration pointing at nothing real."""
    return CatalogConfig(**TestEnvironment.get_mock_config())


@pytest.fixture
def fake_redis():
    """In-memory Redis stand-in."""
    return InMemoryRedis()


@pytest.fixture
def catalog_repository():
    """In-memory repository with the factory data set."""
    return InMemoryCatalogRepository()


@pytest.fixture
def catalog_service(catalog_config, fake_redis, catalog_repository):
    """CatalogService wired to the in-memory cache and repository."""
    service = CatalogService(catalog_config)
    service.cache.redis = fake_redis
    service.repository = catalog_repository
    service.store.repository = catalog_repository
    return service


@pytest.fixture
def client(catalog_service):
    """Test client; lifespan is not run so no real connections are opened."""
    return TestClient(catalog_service.app)
