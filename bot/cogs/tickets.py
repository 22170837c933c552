from __future__ import annotations

from discord.ext import commands

from core.bot import SupportBuilderBot
from views.ticket_controls import TicketCloseView
from views.ticket_panel import TicketMenuView


class TicketsCog(commands.Cog):
    def __init__(self, bot: SupportBuilderBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        # Persistent views keep buttons on earlier messages working after a restart.
        self.bot.add_view(TicketMenuView(self.bot))
        self.bot.add_view(TicketCloseView(self.bot))

    async def cog_unload(self) -> None:
        await self.bot.ticket_service.drain()


async def setup(bot: SupportBuilderBot) -> None:
    await bot.add_cog(TicketsCog(bot))
