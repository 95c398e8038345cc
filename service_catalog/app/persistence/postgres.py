"""
PostgreSQL repository for the catalog service.

Read-only: every method issues one parameterized query and maps the rows
onto catalog models. Natural keys are matched with equality only.
"""

import asyncio
from contextlib import nullcontext
from typing import Any, List, Optional, TYPE_CHECKING

import asyncpg
from shared.logging import get_logger
from shared.errors import DatabaseError
from ..catalog.models import ApiKey, Build, Mod, Modpack

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


MODPACK_COLUMNS = "id, slug, name, recommended, latest, hidden, private"
BUILD_COLUMNS = (
    "id, modpack_id, version, minecraft, forge, min_java, min_memory, is_published, private"
)

SELECT_KEYS = "SELECT api_key FROM keys"
SELECT_KEY = "SELECT api_key, name, created_at FROM keys WHERE api_key = $1 LIMIT 1"
SELECT_CLIENTS = "SELECT uuid FROM clients"
SELECT_CLIENT_GRANTS = """
    SELECT client_modpack.modpack_id
    FROM clients
    JOIN client_modpack ON clients.id = client_modpack.client_id
    WHERE clients.uuid = $1
    ORDER BY client_modpack.modpack_id
"""
SELECT_MODPACKS = f"SELECT {MODPACK_COLUMNS} FROM modpacks ORDER BY id"
SELECT_MODPACK = f"SELECT {MODPACK_COLUMNS} FROM modpacks WHERE slug = $1 ORDER BY id LIMIT 1"
SELECT_BUILDS = f"SELECT {BUILD_COLUMNS} FROM builds WHERE modpack_id = $1::int ORDER BY id"
SELECT_BUILD = (
    f"SELECT {BUILD_COLUMNS} FROM builds WHERE modpack_id = $1::int AND version = $2 LIMIT 1"
)
SELECT_MODS = """
    SELECT mods.id, mods.name, mods.pretty_name, mods.author, mods.description, mods.link,
           mv.version, mv.md5, mv.filesize
    FROM build_modversion AS bmv
    INNER JOIN modversions AS mv ON mv.id = bmv.modversion_id
    INNER JOIN mods ON mods.id = mv.mod_id
    WHERE bmv.build_id = $1::int
    ORDER BY mods.name
"""


class CatalogRepository:
    """PostgreSQL access for packs, builds, mods, keys and clients."""

    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 50,
        acquire_timeout: float = 1.0,
        command_timeout: float = 30.0,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self.command_timeout = command_timeout
        self.metrics = metrics
        self.logger = get_logger("catalog.database")
        self.pool: Optional[asyncpg.Pool] = None
        self._started = False
        self._pool_lock: Optional[asyncio.Lock] = None

    async def start(self):
        """Open the connection pool.

        The service boots even when PostgreSQL is down; the pool is then
        created on the first query and /health reports the outage.
        """
        self._started = True
        self._pool_lock = asyncio.Lock()
        try:
            await self._create_pool()
        except DatabaseError:
            self.logger.warning("PostgreSQL unreachable at startup, connecting on first query")

    async def stop(self):
        """Close the connection pool."""
        self._started = False
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL pool stopped")

    async def _create_pool(self):
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout
            )
            self.logger.info("PostgreSQL pool started", max_size=self.max_size)

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL pool", error=str(e))
            raise DatabaseError("Failed to start PostgreSQL pool", {"error": str(e)}) from e

    async def _get_pool(self, name: str) -> asyncpg.Pool:
        if self.pool is not None:
            return self.pool
        if not self._started:
            raise DatabaseError("PostgreSQL pool is not started", {"query": name})

        async with self._pool_lock:
            if self.pool is None:
                await self._create_pool()
        return self.pool

    async def _fetch(self, name: str, query: str, *args: Any) -> List[asyncpg.Record]:
        """Run a query on a pooled connection, wrapping every failure."""
        pool = await self._get_pool(name)

        try:
            conn = await pool.acquire(timeout=self.acquire_timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(
                "Timed out acquiring database connection",
                query=name,
                timeout=self.acquire_timeout
            )
            raise DatabaseError("Connection acquisition timed out", {"query": name}) from e
        except Exception as e:
            self.logger.error("Error acquiring database connection", query=name, error=str(e))
            raise DatabaseError("Error acquiring connection", {"query": name, "error": str(e)}) from e

        try:
            with self._timed(name):
                return await conn.fetch(query, *args)

        except asyncio.TimeoutError as e:
            self.logger.error("Query timed out", query=name, timeout=self.command_timeout)
            raise DatabaseError("Query timed out", {"query": name}) from e
        except Exception as e:
            self.logger.error("Error running query", query=name, error=str(e))
            raise DatabaseError("Error running query", {"query": name, "error": str(e)}) from e
        finally:
            await pool.release(conn)

    def _timed(self, name: str):
        if self.metrics:
            return self.metrics.time_operation("database_query_duration_seconds", query=name)
        return nullcontext()

    async def fetch_keys(self) -> List[str]:
        """All valid API key strings."""
        rows = await self._fetch("keys", SELECT_KEYS)
        return [row["api_key"] for row in rows]

    async def fetch_key(self, api_key: str) -> Optional[ApiKey]:
        """A single API key record."""
        rows = await self._fetch("key", SELECT_KEY, api_key)
        return ApiKey(**dict(rows[0])) if rows else None

    async def fetch_clients(self) -> List[str]:
        """All registered client UUIDs."""
        rows = await self._fetch("clients", SELECT_CLIENTS)
        return [str(row["uuid"]) for row in rows]

    async def fetch_client_grants(self, client_uuid: str) -> List[int]:
        """Modpack ids explicitly granted to a client."""
        rows = await self._fetch("client_grants", SELECT_CLIENT_GRANTS, client_uuid)
        return [row["modpack_id"] for row in rows]

    async def fetch_modpacks(self) -> List[Modpack]:
        rows = await self._fetch("modpacks", SELECT_MODPACKS)
        return [Modpack(**dict(row)) for row in rows]

    async def fetch_modpack(self, slug: str) -> Optional[Modpack]:
        rows = await self._fetch("modpack", SELECT_MODPACK, slug)
        return Modpack(**dict(rows[0])) if rows else None

    async def fetch_builds(self, modpack_id: int) -> List[Build]:
        rows = await self._fetch("builds", SELECT_BUILDS, modpack_id)
        return [Build(**dict(row)) for row in rows]

    async def fetch_build(self, modpack_id: int, version: str) -> Optional[Build]:
        rows = await self._fetch("build", SELECT_BUILD, modpack_id, version)
        return Build(**dict(rows[0])) if rows else None

    async def fetch_mods(self, build_id: int) -> List[Mod]:
        """Mods of a build, ordered by name."""
        rows = await self._fetch("mods", SELECT_MODS, build_id)
        return [Mod(**dict(row)) for row in rows]

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            await self._fetch("health", "SELECT 1")
            return True
        except DatabaseError:
            return False
