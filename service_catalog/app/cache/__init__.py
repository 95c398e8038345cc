"""
Caching package for the catalog service.
"""

from .redis_cache import RedisCache
from .store import CacheLookup, CacheStatus, CatalogStore

__all__ = ["RedisCache", "CatalogStore", "CacheLookup", "CacheStatus"]
