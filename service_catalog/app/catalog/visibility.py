"""
Visibility policy for catalog entities.

Pure functions, no I/O. Each entity is judged on its own flags: a visible
modpack may still have no visible builds.
"""

from ..access.context import AccessContext
from .models import Build, Modpack


def is_modpack_visible(pack: Modpack, ctx: AccessContext) -> bool:
    """Whether a modpack appears in the catalog listing."""
    if pack.hidden:
        return ctx.key_authed
    if pack.private:
        return ctx.key_authed or ctx.has_grant(pack.id)
    return True


def is_build_visible(build: Build, pack: Modpack, ctx: AccessContext) -> bool:
    """Whether a build of ``pack`` may be served to the caller.

    Unpublished builds are never served. The key-or-grant rule applies the
    same way whether or not the parent pack is hidden.
    """
    if not build.is_published:
        return False
    return not build.private or ctx.key_authed or ctx.has_grant(pack.id)
