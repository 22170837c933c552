from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from utils.time import to_iso, utc_now

LOGGER = logging.getLogger(__name__)


def _frozen(mapping: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class GuildTopology:
    """Ids produced by one provisioning run (or rediscovered from live state)."""

    guild_id: int
    voice_channel_id: int
    ticket_category_id: int
    roles: Mapping[str, int] = field(default_factory=dict)
    categories: Mapping[str, int] = field(default_factory=dict)
    channels: Mapping[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    discovered: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", _frozen(self.roles))
        object.__setattr__(self, "categories", _frozen(self.categories))
        object.__setattr__(self, "channels", _frozen(self.channels))

    def to_dict(self) -> dict[str, Any]:
        return {
            "guild_id": self.guild_id,
            "voice_channel_id": self.voice_channel_id,
            "ticket_category_id": self.ticket_category_id,
            "roles": dict(self.roles),
            "categories": dict(self.categories),
            "channels": dict(self.channels),
            "created_at": to_iso(self.created_at),
            "discovered": self.discovered,
        }


class GuildRegistry:
    """Process-lifetime map of guild id to its provisioned topology.

    Entries are only ever replaced as a whole, so readers see either the
    previous topology or the new one, never a mix.
    """

    def __init__(self) -> None:
        self._entries: dict[int, GuildTopology] = {}

    def get(self, guild_id: int) -> GuildTopology | None:
        return self._entries.get(guild_id)

    def commit(self, topology: GuildTopology) -> None:
        previous = self._entries.get(topology.guild_id)
        self._entries[topology.guild_id] = topology
        LOGGER.info(
            "Committed topology for guild %s (replaced=%s, discovered=%s)",
            topology.guild_id,
            previous is not None,
            topology.discovered,
            extra={"guild_id": topology.guild_id},
        )

    def discard(self, guild_id: int) -> None:
        if self._entries.pop(guild_id, None) is not None:
            LOGGER.info("Discarded topology for guild %s", guild_id, extra={"guild_id": guild_id})

    def snapshot(self) -> dict[int, GuildTopology]:
        return dict(self._entries)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
