"""
Catalog service for the Modpack Catalog API.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from shared.base_service import BaseService
from shared.config import CatalogConfig
from shared.errors import ForbiddenError, NotFoundError

from .access.context import AccessContext
from .access.resolver import AccessResolver
from .cache.redis_cache import RedisCache
from .cache.store import CatalogStore
from .catalog.assembler import ResponseAssembler
from .catalog.models import (
    ApiInfoResponse, BuildResponse, IncludeOption, ModpackListResponse,
    ModpackResponse, VerifyKeyResponse
)
from .catalog.visibility import is_build_visible
from .persistence.postgres import CatalogRepository


class CatalogService(BaseService):
    """Catalog service implementation."""

    def __init__(self, config: Optional[CatalogConfig] = None):
        super().__init__("catalog", config)

        self.repository = CatalogRepository(
            self.config.postgres_dsn,
            min_size=self.config.postgres_pool_min_size,
            max_size=self.config.postgres_pool_max_size,
            acquire_timeout=self.config.postgres_acquire_timeout,
            command_timeout=self.config.postgres_command_timeout,
            metrics=self.metrics,
        )
        self.cache = RedisCache(
            self.config.redis_url,
            password=self.config.redis_password,
            socket_timeout=self.config.redis_socket_timeout,
        )
        self.store = CatalogStore(
            self.cache,
            self.repository,
            key_prefix=self.config.cache_key_prefix,
            access_ttl=self.config.access_cache_ttl,
            catalog_ttl=self.config.catalog_cache_ttl,
            metrics=self.metrics,
        )
        self.access_resolver = AccessResolver(self.store, metrics=self.metrics)
        self.assembler = ResponseAssembler(self.store, self.config.mirror_url)

        self._setup_catalog_routes()

    def _setup_catalog_routes(self):
        """Set up catalog-specific routes."""

        async def access_context(
            k: Optional[str] = Query(None, description="API key"),
            cid: Optional[str] = Query(None, description="Client ID"),
        ) -> AccessContext:
            # Resolved once per request and shared by every dependant.
            return await self.access_resolver.resolve(k, cid)

        router = APIRouter(prefix="/api", dependencies=[Depends(access_context)])

        @self.app.get("/", include_in_schema=False)
        async def root():
            return RedirectResponse("/api/")

        @router.get("", response_model=ApiInfoResponse)
        @router.get("/", response_model=ApiInfoResponse, include_in_schema=False)
        async def api_info():
            """API name and version."""
            return ApiInfoResponse(
                api=self.config.api_name,
                version=self.config.api_version,
                stream=self.config.api_stream,
            )

        @router.get("/modpack", response_model=ModpackListResponse, response_model_exclude_unset=True)
        async def list_modpacks(
            include: Optional[str] = Query(None, description="mods or full"),
            ctx: AccessContext = Depends(access_context),
        ):
            """Catalog listing filtered by visibility."""
            return await self.assembler.modpack_listing(ctx, IncludeOption.parse(include))

        @router.get("/modpack/{slug}", response_model=ModpackResponse, response_model_exclude_unset=True)
        async def get_modpack(slug: str, ctx: AccessContext = Depends(access_context)):
            """Modpack detail."""
            pack = await self.store.get_modpack(slug)
            if pack is None:
                raise NotFoundError("Modpack does not exist")

            return await self.assembler.modpack_detail(pack, ctx)

        @router.get("/modpack/{slug}/{version}", response_model=BuildResponse,
                    response_model_exclude_unset=True)
        async def get_build(
            slug: str,
            version: str,
            include: Optional[str] = Query(None, description="mods"),
            ctx: AccessContext = Depends(access_context),
        ):
            """Build detail."""
            pack = await self.store.get_modpack(slug)
            if pack is None:
                raise NotFoundError("Modpack does not exist")

            build = await self.store.get_build(pack, version)
            if build is None:
                raise NotFoundError("Build does not exist.")

            if not is_build_visible(build, pack, ctx):
                raise ForbiddenError("You are not authorized to view this build.")

            return await self.assembler.build_detail(build, IncludeOption.parse(include))

        @router.get("/verify/{key}", response_model=VerifyKeyResponse)
        async def verify_key(key: str):
            """Check whether an API key exists."""
            key_info = await self.store.get_key(key)
            if key_info is None:
                raise NotFoundError("Key does not exist")

            return VerifyKeyResponse(valid=True, name=key_info.name, created_at=key_info.created_at)

        self.app.include_router(router)

    async def _check_dependencies(self):
        """Check catalog service dependencies."""
        return {
            # The cache is advisory; reads fall back to PostgreSQL.
            "redis": "ok" if await self.cache.health_check() else "degraded",
            "postgres": "ok" if await self.repository.health_check() else "error",
        }

    async def start(self):
        """Start catalog service components."""
        await self.repository.start()
        await self.cache.start()
        self.logger.info("Server running", host=self.config.host, port=self.config.port)

    async def stop(self):
        """Stop catalog service components."""
        await self.repository.stop()
        await self.cache.stop()
        self.logger.info("Server stopped, shutting down")


def create_app(config: Optional[CatalogConfig] = None):
    """Create catalog service application."""
    service = CatalogService(config)
    return service.app


if __name__ == "__main__":
    CatalogService().run()
