"""
Access resolution for incoming catalog requests.
"""

from typing import FrozenSet, Optional, Tuple, TYPE_CHECKING

from shared.concurrency import gather_all
from shared.logging import get_logger
from .context import AccessContext

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..cache.store import CatalogStore


class AccessResolver:
    """Turns the optional ``k`` and ``cid`` request parameters into an AccessContext.

    The key and client checks are unrelated, so they run concurrently. Both
    must succeed: a backing-store failure in either aborts the resolution
    instead of quietly returning a weaker context.
    """

    def __init__(self, store: "CatalogStore", metrics: Optional["MetricsCollector"] = None):
        self.store = store
        self.metrics = metrics
        self.logger = get_logger("catalog.auth")

    async def resolve(self, api_key: Optional[str], client_id: Optional[str]) -> AccessContext:
        """Resolve both credentials; raises if either lookup fails."""
        try:
            key_authed, (client_authed, granted) = await gather_all(
                self.resolve_key(api_key),
                self.resolve_client(client_id),
            )
        except Exception as e:
            self._log("error", "Error during authentication processing", error=str(e))
            self._count("error")
            raise

        self._count("key" if key_authed else ("client" if client_authed else "anonymous"))
        return AccessContext(
            key_authed=key_authed,
            client_authed=client_authed,
            granted_modpack_ids=granted,
        )

    async def resolve_key(self, api_key: Optional[str]) -> bool:
        if not api_key:
            return False

        keys = await self.store.get_keys()
        if api_key not in keys:
            return False

        self._log("info", "Authenticated API key", api_key=_mask(api_key))
        return True

    async def resolve_client(self, client_id: Optional[str]) -> Tuple[bool, FrozenSet[int]]:
        if not client_id:
            return False, frozenset()

        clients = await self.store.get_clients()
        if client_id not in clients:
            return False, frozenset()

        self._log("info", "Authenticated client ID", client_id=client_id)
        granted = frozenset(await self.store.get_client_grants(client_id))
        self._log("info", "Assigned modpack access for client", client_id=client_id,
                  modpacks=sorted(granted))
        return True, granted

    def _log(self, level: str, event: str, **meta):
        # Logging must never decide the outcome of a resolution.
        try:
            getattr(self.logger, level)(event, **meta)
        except Exception:
            pass

    def _count(self, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("access_resolutions_total", outcome=outcome)


def _mask(secret: str) -> str:
    return secret[:8] + "..." if len(secret) > 8 else "***"
