"""
Access package.

Resolves the optional API key (``k``) and client id (``cid``) of a request
into an immutable AccessContext that is passed down to visibility checks.
"""

from .context import AccessContext
from .resolver import AccessResolver

__all__ = ["AccessContext", "AccessResolver"]
