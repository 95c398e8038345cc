"""
Persistence package for the catalog service.
"""

from .postgres import CatalogRepository

__all__ = ["CatalogRepository"]
