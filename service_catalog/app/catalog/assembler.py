"""
Response assembly for catalog endpoints.
"""

from typing import Dict, List, Optional, Union, TYPE_CHECKING

from shared.concurrency import gather_all
from shared.logging import get_logger
from ..access.context import AccessContext
from .models import (
    Build, BuildResponse, IncludeOption, Mod, ModResponse, Modpack,
    ModpackListResponse, ModpackResponse
)
from .visibility import is_build_visible, is_modpack_visible

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..cache.store import CatalogStore


def mod_url(mirror_url: str, name: str, version: str) -> str:
    """Download location of a mod archive on the mirror."""
    return f"{mirror_url}mods/{name}/{name}-{version}.zip"


class ResponseAssembler:
    """Builds wire models from catalog rows and the caller's AccessContext."""

    def __init__(self, store: "CatalogStore", mirror_url: str):
        self.store = store
        self.mirror_url = mirror_url
        self.logger = get_logger("catalog.assembler")

    async def modpack_detail(self, pack: Modpack, ctx: AccessContext) -> ModpackResponse:
        """Pack detail with the builds the caller may see."""
        try:
            builds = await self.store.get_builds(pack)
        except Exception as e:
            self.logger.error("Failed to get builds while building modpack response",
                              slug=pack.slug, error=str(e))
            raise

        return ModpackResponse(
            name=pack.slug,
            display_name=pack.name,
            recommended=pack.recommended,
            latest=pack.latest,
            builds=[build.version for build in builds if is_build_visible(build, pack, ctx)],
        )

    async def build_detail(self, build: Build, include: Optional[IncludeOption] = None) -> BuildResponse:
        """Build detail; the caller must already have passed is_build_visible."""
        try:
            mods = await self.store.get_mods(build)
        except Exception as e:
            self.logger.error("Failed to get mods while building build response",
                              build_id=build.id, error=str(e))
            raise

        return BuildResponse(
            minecraft=build.minecraft,
            forge=build.forge,
            java=build.min_java,
            memory=build.min_memory or 0,
            mods=[self.mod_entry(mod, include) for mod in mods],
        )

    def mod_entry(self, mod: Mod, include: Optional[IncludeOption] = None) -> ModResponse:
        fields = {
            "name": mod.name,
            "version": mod.version,
            "md5": mod.md5,
            "url": mod_url(self.mirror_url, mod.name, mod.version),
        }

        if mod.filesize:
            fields["filesize"] = mod.filesize

        if include is IncludeOption.MODS:
            fields["pretty_name"] = mod.pretty_name
            fields["author"] = mod.author
            fields["description"] = mod.description
            fields["link"] = mod.link

        # Only keys passed here are emitted (exclude_unset).
        return ModResponse(**fields)

    async def modpack_listing(self, ctx: AccessContext,
                              include: Optional[IncludeOption] = None) -> ModpackListResponse:
        """Visible packs keyed by slug; full details are fetched concurrently for include=full."""
        packs: List[Modpack] = [
            pack for pack in await self.store.get_modpacks() if is_modpack_visible(pack, ctx)
        ]

        modpacks: Dict[str, Union[ModpackResponse, str]] = {pack.slug: pack.name for pack in packs}

        if include is IncludeOption.FULL and packs:
            details = await gather_all(*(self.modpack_detail(pack, ctx) for pack in packs))
            for pack, detail in zip(packs, details):
                modpacks[pack.slug] = detail

        return ModpackListResponse(modpacks=modpacks, mirror_url=self.mirror_url)
