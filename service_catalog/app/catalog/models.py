"""
Catalog data models.

Row models mirror the columns the repository selects and double as the cache
payload format. Wire models describe exactly what each endpoint returns;
optional fields are only emitted when explicitly set.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class IncludeOption(str, Enum):
    """Values accepted by the ``include`` query parameter."""
    MODS = "mods"
    FULL = "full"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["IncludeOption"]:
        """Lenient parse; unknown values behave as if absent."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# Rows

class Modpack(BaseModel):
    """A modpack row."""
    id: int
    slug: str
    name: str
    recommended: Optional[str] = None
    latest: Optional[str] = None
    hidden: bool = False
    private: bool = False


class Build(BaseModel):
    """A build row."""
    id: int
    modpack_id: int
    version: str
    minecraft: Optional[str] = None
    forge: Optional[str] = None
    min_java: Optional[str] = None
    min_memory: Optional[int] = None
    is_published: bool = False
    private: bool = False


class Mod(BaseModel):
    """A mod version attached to a build."""
    id: int
    name: str
    version: str
    md5: Optional[str] = None
    filesize: Optional[int] = None
    pretty_name: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None


class ApiKey(BaseModel):
    """An API key row."""
    api_key: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None


# Wire

class ApiInfoResponse(BaseModel):
    """Response model for the API root."""
    api: str
    version: str
    stream: str


class ModResponse(BaseModel):
    """A mod inside a build response."""
    name: str
    version: str
    md5: Optional[str] = None
    url: str
    filesize: Optional[int] = None
    pretty_name: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None


class BuildResponse(BaseModel):
    """Response model for a single build."""
    minecraft: Optional[str] = None
    forge: Optional[str] = None
    java: Optional[str] = None
    memory: int = 0
    mods: List[ModResponse] = Field(default_factory=list)


class ModpackResponse(BaseModel):
    """Response model for a single modpack."""
    name: str
    display_name: str
    recommended: Optional[str] = None
    latest: Optional[str] = None
    builds: List[str] = Field(default_factory=list)


class ModpackListResponse(BaseModel):
    """Catalog listing; values are display names, or full details with include=full."""
    modpacks: Dict[str, Union[ModpackResponse, str]] = Field(default_factory=dict)
    mirror_url: str


class VerifyKeyResponse(BaseModel):
    """Response model for API key verification."""
    valid: bool
    name: Optional[str] = None
    created_at: Optional[datetime] = None
