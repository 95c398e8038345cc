"""
Shared configuration management for the Modpack Catalog API.
"""

from typing import Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="debug")
    logging_enabled: bool = Field(default=True)

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_password: Optional[str] = Field(default=None)
    redis_socket_timeout: float = Field(default=5.0)
    postgres_dsn: str = Field(
        default="postgres://localhost:5432/solder",
        validation_alias=AliasChoices("CATALOG_POSTGRES_DSN", "DATABASE_URL"),
    )


class CatalogConfig(BaseConfig):
    """Catalog service configuration."""

    service_name: str = "catalog"
    host: str = "localhost"
    port: int = 3000

    # Relational pool
    postgres_pool_min_size: int = Field(default=1, ge=0)
    postgres_pool_max_size: int = Field(default=50, ge=1)
    postgres_acquire_timeout: float = Field(default=1.0, gt=0)
    postgres_command_timeout: float = Field(default=30.0, gt=0)

    # Cache policy
    cache_key_prefix: str = Field(default="api")
    access_cache_ttl: int = Field(default=60, ge=1)
    catalog_cache_ttl: int = Field(default=300, ge=1)

    # Wire
    mirror_url: str = Field(default="http://mirror.technicpack.net/Technic/")
    api_name: str = Field(default="SolderPy")
    api_version: str = Field(default="3.0.6")
    api_stream: str = Field(default="stable")

    @model_validator(mode="after")
    def _check_policy(self) -> "CatalogConfig":
        # Access data gates permissions and must never outlive catalog data.
        if self.access_cache_ttl > self.catalog_cache_ttl:
            raise ValueError("access_cache_ttl must not exceed catalog_cache_ttl")
        if self.postgres_pool_min_size > self.postgres_pool_max_size:
            raise ValueError("postgres_pool_min_size must not exceed postgres_pool_max_size")
        if not self.mirror_url.endswith("/"):
            self.mirror_url = self.mirror_url + "/"
        return self


def get_config(**overrides) -> CatalogConfig:
    """Get configuration for the catalog service."""
    return CatalogConfig(**overrides)
