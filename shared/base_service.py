"""
Base service class for Modpack Catalog API services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Dict, Optional
import time
import os

from shared.config import CatalogConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import BackingStoreError, CatalogException, ErrorResponse


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[CatalogConfig] = None):
        self.service_name = service_name
        self.config = config or get_config()
        self.logger = get_logger(f"{service_name}.server")
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level, self.config.logging_enabled)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.start()
            try:
                yield
            finally:
                await self.stop()

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Modpack Catalog API - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url=None,
            openapi_url="/openapi.json" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            start_time = time.time()
            set_request_id(request.headers.get("X-Request-ID"))

            try:
                response = await call_next(request)

                duration = time.time() - start_time
                route = request.scope.get("route")
                endpoint = getattr(route, "path", "unmatched")

                self.metrics.record_http_request(
                    method=request.method,
                    endpoint=endpoint,
                    status_code=response.status_code,
                    duration=duration
                )

                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2)
                )

                return response
            finally:
                clear_context()

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            dependencies = await self._check_dependencies()
            # "degraded" dependencies are reported but do not fail the check.
            healthy = all(status != "error" for status in dependencies.values())
            if not healthy:
                overall = "error"
            elif any(status == "degraded" for status in dependencies.values()):
                overall = "degraded"
            else:
                overall = "ok"
            self.metrics.record_health_check(overall)

            return JSONResponse(
                status_code=200 if healthy else 503,
                content={
                    "service": self.service_name,
                    "status": overall,
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(BackingStoreError)
        async def backing_store_exception_handler(request: Request, exc: BackingStoreError):
            """Generic 500; internal detail stays in the logs."""
            self.logger.error(
                "Backing store error",
                code=exc.code,
                message=exc.message,
                details=exc.details,
                path=request.url.path
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump(exclude_none=True)
            )

        @self.app.exception_handler(CatalogException)
        async def catalog_exception_handler(request: Request, exc: CatalogException):
            """Not-found and forbidden outcomes are expected, not errors."""
            self.logger.info(
                "Request rejected",
                code=exc.code,
                message=exc.message,
                path=request.url.path
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump(exclude_none=True)
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Framework-level HTTP errors (unknown route, bad method)."""
            return JSONResponse(
                status_code=exc.status_code,
                content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
                headers=getattr(exc, "headers", None)
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Uncaught error", error=str(exc), path=request.url.path, exc_info=exc)
            self.metrics.record_error("INTERNAL_ERROR")
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error="An unexpected error has occurred").model_dump(exclude_none=True)
            )

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
            proxy_headers=True
        )
