"""
Per-request access context.
"""

from dataclasses import dataclass, field
from typing import FrozenSet


@dataclass(frozen=True)
class AccessContext:
    """What the caller proved about itself on this request.

    key_authed grants universal read access; granted_modpack_ids is the
    scoped alternative obtained through a registered client id.
    """
    key_authed: bool = False
    client_authed: bool = False
    granted_modpack_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "AccessContext":
        return cls()

    def has_grant(self, modpack_id: int) -> bool:
        return modpack_id in self.granted_modpack_ids
