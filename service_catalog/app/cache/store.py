"""
Cache-aside store for catalog reads.

Every logical query has a deterministic cache key, a TTL and a repository
fallback. The cache is advisory: read failures and unreadable payloads fall
through to PostgreSQL, and write-back is best effort. Repository failures
propagate and are never cached.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError
from shared.logging import get_logger
from shared.errors import CacheError
from ..catalog.models import ApiKey, Build, Mod, Modpack
from ..persistence.postgres import CatalogRepository
from .redis_cache import RedisCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_ACCESS_TTL = 60
DEFAULT_CATALOG_TTL = 300

_STRING_LIST = TypeAdapter(List[str])
_MODPACK_LIST = TypeAdapter(List[Modpack])
_MODPACK = TypeAdapter(Modpack)
_BUILD_LIST = TypeAdapter(List[Build])
_BUILD = TypeAdapter(Build)
_MOD_LIST = TypeAdapter(List[Mod])


class CacheStatus(str, Enum):
    """Outcome of a cache read."""
    HIT = "hit"
    MISS = "miss"
    INVALID = "invalid"


@dataclass
class CacheLookup:
    """A cache read result; ``value`` is only meaningful on a hit."""
    status: CacheStatus
    value: Any = None


class CatalogStore:
    """Read-through cache in front of the catalog repository."""

    def __init__(
        self,
        cache: RedisCache,
        repository: CatalogRepository,
        *,
        key_prefix: str = "api",
        access_ttl: int = DEFAULT_ACCESS_TTL,
        catalog_ttl: int = DEFAULT_CATALOG_TTL,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.cache = cache
        self.repository = repository
        self.key_prefix = key_prefix
        self.access_ttl = access_ttl
        self.catalog_ttl = catalog_ttl
        self.metrics = metrics
        self.logger = get_logger("catalog.cache")

    def make_key(self, *parts: Any) -> str:
        """Generate cache key."""
        return ":".join([self.key_prefix] + [str(part) for part in parts])

    async def read(self, key: str, adapter: TypeAdapter, cache_type: str) -> CacheLookup:
        """Read and deserialize a cached value without touching the repository."""
        try:
            raw = await self.cache.get(key)
        except CacheError as e:
            self.logger.error("Cache read failed, falling back to database", key=key, error=str(e))
            self._count("cache_misses_total", cache_type)
            return CacheLookup(CacheStatus.MISS)

        if not raw:
            self._count("cache_misses_total", cache_type)
            return CacheLookup(CacheStatus.MISS)

        try:
            value = adapter.validate_json(raw)
        except ValidationError as e:
            self.logger.warning("Discarding malformed cache entry", key=key, error=str(e))
            self._count("cache_invalid_total", cache_type)
            return CacheLookup(CacheStatus.INVALID)

        self._count("cache_hits_total", cache_type)
        return CacheLookup(CacheStatus.HIT, value)

    async def write(self, key: str, adapter: TypeAdapter, value: Any, ttl: int) -> bool:
        """Best-effort write; failures are logged and discarded."""
        try:
            await self.cache.set(key, adapter.dump_json(value).decode("utf-8"), ttl)
            return True
        except CacheError as e:
            self.logger.error("Cache write failed", key=key, error=str(e))
            return False

    async def _load(
        self,
        cache_type: str,
        key: str,
        ttl: int,
        adapter: TypeAdapter,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        lookup = await self.read(key, adapter, cache_type)
        if lookup.status is CacheStatus.HIT:
            self.logger.debug("Loaded from cache", cache_type=cache_type, key=key)
            return lookup.value

        value = await fetch()

        # Absent single rows are not cached; lists, even empty, are.
        if value is not None:
            await self.write(key, adapter, value, ttl)
        return value

    def _count(self, metric_name: str, cache_type: str):
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type=cache_type)

    # Access data

    async def get_keys(self) -> List[str]:
        """Valid API key strings."""
        return await self._load(
            "keys", self.make_key("access", "keys"), self.access_ttl,
            _STRING_LIST, self.repository.fetch_keys
        )

    async def get_clients(self) -> List[str]:
        """Registered client UUIDs."""
        return await self._load(
            "clients", self.make_key("access", "clients"), self.access_ttl,
            _STRING_LIST, self.repository.fetch_clients
        )

    async def get_client_grants(self, client_uuid: str) -> List[int]:
        """Granted modpack ids; always read from the database."""
        return await self.repository.fetch_client_grants(client_uuid)

    async def get_key(self, api_key: str) -> Optional[ApiKey]:
        """Full key record for verification; always read from the database."""
        return await self.repository.fetch_key(api_key)

    # Catalog data

    async def get_modpacks(self) -> List[Modpack]:
        return await self._load(
            "modpacks", self.make_key("modpacks"), self.catalog_ttl,
            _MODPACK_LIST, self.repository.fetch_modpacks
        )

    async def get_modpack(self, slug: str) -> Optional[Modpack]:
        return await self._load(
            "modpack", self.make_key("modpack", slug), self.catalog_ttl,
            _MODPACK, lambda: self.repository.fetch_modpack(slug)
        )

    async def get_builds(self, pack: Modpack) -> List[Build]:
        return await self._load(
            "builds", self.make_key("modpack", "builds", pack.id), self.catalog_ttl,
            _BUILD_LIST, lambda: self.repository.fetch_builds(pack.id)
        )

    async def get_build(self, pack: Modpack, version: str) -> Optional[Build]:
        return await self._load(
            "build", self.make_key("build", pack.id, version), self.catalog_ttl,
            _BUILD, lambda: self.repository.fetch_build(pack.id, version)
        )

    async def get_mods(self, build: Build) -> List[Mod]:
        return await self._load(
            "mods", self.make_key("mods", build.id), self.catalog_ttl,
            _MOD_LIST, lambda: self.repository.fetch_mods(build.id)
        )
