"""
Shared error handling for the Modpack Catalog API.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    status: Optional[int] = None
    error: str


class CatalogException(Exception):
    """Base exception for the catalog service."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(status=self.status_code, error=self.message)


class NotFoundError(CatalogException):
    """A requested catalog entity does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not Found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ForbiddenError(CatalogException):
    """The entity exists but the caller may not see it."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__("FORBIDDEN", message, details)


class BackingStoreError(CatalogException):
    """A cache or database round-trip failed.

    The message is for logs only; clients receive a generic body.
    """

    status_code = 500
    public_message = "An error has occurred"

    def __init__(self, code: str = "BACKING_STORE_ERROR", message: str = "Backing store error",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.public_message)


class DatabaseError(BackingStoreError):
    """Relational store errors, including pool acquisition timeouts."""

    def __init__(self, message: str = "Database error", details: Optional[Dict[str, Any]] = None):
        super().__init__("DATABASE_ERROR", message, details)


class CacheError(BackingStoreError):
    """Cache errors."""

    def __init__(self, message: str = "Cache error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_ERROR", message, details)
