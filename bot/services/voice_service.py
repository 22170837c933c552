from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

import discord

from core.config import VoiceConfig
from core.errors import VoicePresenceError
from services.registry import GuildRegistry

LOGGER = logging.getLogger(__name__)


class VoicePresenceService:
    """Keeps one muted, deafened voice connection per guild."""

    def __init__(self, config: VoiceConfig, registry: GuildRegistry) -> None:
        self.config = config
        self.registry = registry
        self._pending: dict[int, asyncio.Task[discord.VoiceProtocol]] = {}

    def select_channel(self, guild: discord.Guild) -> discord.VoiceChannel | None:
        topology = self.registry.get(guild.id)
        if topology is not None:
            channel = discord.utils.get(guild.voice_channels, id=topology.voice_channel_id)
            if channel is not None:
                return channel
            LOGGER.info(
                "Registered voice channel %s is gone in guild %s, falling back to name match",
                topology.voice_channel_id,
                guild.id,
                extra={"guild_id": guild.id},
            )
        # Matches any channel containing the marker, including ones an admin named similarly.
        marker = self.config.channel_marker
        for channel in guild.voice_channels:
            if marker in channel.name:
                return channel
        return None

    def _is_live(self, guild: discord.Guild, client: discord.VoiceProtocol) -> bool:
        channel = getattr(client, "channel", None)
        if channel is None:
            return False
        return discord.utils.get(guild.voice_channels, id=channel.id) is not None

    async def _drop_stale(self, guild: discord.Guild, client: discord.VoiceProtocol) -> None:
        try:
            await client.disconnect(force=True)
        except (discord.ClientException, discord.HTTPException):
            LOGGER.debug("Stale voice client for guild %s was already closed", guild.id)

    async def _open(self, guild: discord.Guild, channel: discord.VoiceChannel) -> discord.VoiceProtocol:
        try:
            client = await channel.connect(
                timeout=self.config.connect_timeout_seconds,
                reconnect=True,
                self_mute=self.config.self_mute,
                self_deaf=self.config.self_deaf,
            )
        except (discord.ClientException, discord.HTTPException, OSError) as exc:
            LOGGER.exception(
                "Failed to join voice channel %s in guild %s",
                channel.id,
                guild.id,
                extra={"guild_id": guild.id, "channel_id": channel.id},
            )
            raise VoicePresenceError(f"Could not join voice channel {channel.name}.") from exc
        LOGGER.info(
            "Joined voice channel %s in guild %s (muted=%s, deafened=%s)",
            channel.id,
            guild.id,
            self.config.self_mute,
            self.config.self_deaf,
            extra={"guild_id": guild.id, "channel_id": channel.id},
        )
        return client

    async def connect_to_voice(
        self, guild: discord.Guild, channel: discord.VoiceChannel
    ) -> discord.VoiceProtocol:
        existing = guild.voice_client
        if existing is not None:
            if self._is_live(guild, existing):
                return existing
            await self._drop_stale(guild, existing)

        pending = self._pending.get(guild.id)
        if pending is not None:
            return await asyncio.shield(pending)

        task = asyncio.create_task(self._open(guild, channel), name=f"voice.connect.{guild.id}")
        self._pending[guild.id] = task
        task.add_done_callback(lambda _: self._pending.pop(guild.id, None))
        return await asyncio.shield(task)

    async def ensure_presence(self, guild: discord.Guild) -> discord.VoiceProtocol | None:
        channel = self.select_channel(guild)
        if channel is None:
            LOGGER.info("No bot voice channel found in guild %s", guild.id, extra={"guild_id": guild.id})
            return None
        return await self.connect_to_voice(guild, channel)

    async def reconnect_all(self, guilds: Iterable[discord.Guild]) -> dict[int, bool]:
        results: dict[int, bool] = {}
        for guild in guilds:
            try:
                client = await self.ensure_presence(guild)
            except Exception:
                LOGGER.exception(
                    "Error auto-joining voice channel for guild %s", guild.id, extra={"guild_id": guild.id}
                )
                results[guild.id] = False
                continue
            results[guild.id] = client is not None
        return results

    def status(self, guild: discord.Guild) -> dict[str, object]:
        client = guild.voice_client
        channel = getattr(client, "channel", None) if client is not None else None
        return {
            "guild_id": guild.id,
            "connected": client is not None and self._is_live(guild, client),
            "channel_id": channel.id if channel is not None else None,
        }
