from __future__ import annotations

import discord
from discord.ext import commands

from core.bot import SupportBuilderBot
from utils.embeds import make_embed
from views.setup_confirm import SetupConfirmView


def setup_confirmation_embed() -> discord.Embed:
    return make_embed(
        title="Server Setup Confirmation",
        description="\n".join(
            [
                "This will **DELETE** all channels and categories, and all manageable roles.",
                "Then it will create a **new Bot Support Server** structure with channels, roles, and ticket system.",
                "",
                "Are you sure you want to continue?",
            ]
        ),
        color=discord.Color(0xFF5555),
    )


class AdminCog(commands.Cog):
    def __init__(self, bot: SupportBuilderBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        self.bot.add_view(SetupConfirmView(self.bot))

    @commands.command(name="setup", help="Reset the server and build the full support structure.")
    @commands.guild_only()
    @commands.has_permissions(administrator=True)
    async def setup_command(self, ctx: commands.Context[SupportBuilderBot]) -> None:
        await ctx.send(embed=setup_confirmation_embed(), view=SetupConfirmView(self.bot))


async def setup(bot: SupportBuilderBot) -> None:
    await bot.add_cog(AdminCog(bot))
