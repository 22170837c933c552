from __future__ import annotations

import logging

import discord
from discord.ext import commands

from core.bot import SupportBuilderBot

LOGGER = logging.getLogger(__name__)


class EventsCog(commands.Cog):
    def __init__(self, bot: SupportBuilderBot) -> None:
        self.bot = bot

    def rediscover(self, guilds: list[discord.Guild]) -> int:
        found = 0
        for guild in guilds:
            if guild.id in self.bot.registry:
                continue
            topology = self.bot.provisioning_service.discover_topology(guild)
            if topology is None:
                continue
            self.bot.registry.commit(topology)
            found += 1
        return found

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        guilds = list(self.bot.guilds)
        found = self.rediscover(guilds)
        LOGGER.info("Rediscovered topology for %s of %s guild(s)", found, len(guilds))
        if not self.bot.config.voice.reconnect_on_ready:
            return
        results = await self.bot.voice_service.reconnect_all(guilds)
        LOGGER.info(
            "Voice presence restored in %s of %s guild(s)",
            sum(1 for ok in results.values() if ok),
            len(results),
        )

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        self.bot.registry.discard(guild.id)
        LOGGER.info("Left guild %s", guild.id, extra={"guild_id": guild.id})


async def setup(bot: SupportBuilderBot) -> None:
    await bot.add_cog(EventsCog(bot))
