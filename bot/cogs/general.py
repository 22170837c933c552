from __future__ import annotations

import discord
from discord.ext import commands

from core.bot import SupportBuilderBot
from utils.embeds import make_embed
from utils.time import format_uptime


def help_embed(prefix: str) -> discord.Embed:
    embed = make_embed(
        title="Help Menu",
        description=(
            f"Prefix: `{prefix}`\n"
            "This bot is a full **Bot Support Server Builder**, with automatic setup, moderation and tickets."
        ),
        color=discord.Color(0x5865F2),
        footer="Bot Support Server Builder",
    )
    embed.add_field(
        name="Setup & Information",
        value=(
            f"`{prefix}setup` – Reset the server and build the full support structure (Admin only).\n"
            f"`{prefix}stats` – Show bot statistics (servers, users, uptime).\n"
            f"`{prefix}ping` – Check bot latency.\n"
            f"`{prefix}about` – Learn what this bot does.\n"
            f"`{prefix}invite` – Get the bot invite link."
        ),
        inline=False,
    )
    embed.add_field(
        name="Moderation Commands",
        value=(
            f"`{prefix}ban @user [reason]` – Ban a member from the server.\n"
            f"`{prefix}kick @user [reason]` – Kick a member from the server.\n"
            f"`{prefix}clear <1-100>` – Bulk delete messages in the current channel."
        ),
        inline=False,
    )
    embed.add_field(
        name="Ticket System",
        value=(
            "Use the buttons in `#🎫-ticket-create` to open support tickets:\n"
            "- 🛠 General Support – For normal help about the bot or server.\n"
            "- 🐞 Bug Report – To report bugs or issues.\n"
            "- 🤝 Partnership – For partnership and collaboration requests.\n"
            "Each ticket creates a **private channel** visible only to you and staff."
        ),
        inline=False,
    )
    embed.add_field(
        name="Notes",
        value=(
            f"- `{prefix}setup` will **delete existing channels and roles** (that the bot can manage) "
            "and rebuild the server.\n"
            "- A dedicated `🔊 Bot Voice` channel is created and the bot joins it automatically "
            "(muted & deafened)."
        ),
        inline=False,
    )
    return embed


def invite_url(client_id: int) -> str:
    return discord.utils.oauth_url(
        client_id, permissions=discord.Permissions(administrator=True), scopes=("bot",)
    )


class GeneralCog(commands.Cog):
    def __init__(self, bot: SupportBuilderBot) -> None:
        self.bot = bot

    @commands.command(name="ping", help="Check bot latency.")
    async def ping(self, ctx: commands.Context[SupportBuilderBot]) -> None:
        latency_ms = round(self.bot.latency * 1000)
        await ctx.send(
            embed=make_embed("Pong!", f"Latency: `{latency_ms}ms`", color=discord.Color(0x00FF9D))
        )

    @commands.command(name="stats", help="Show bot statistics.")
    async def stats(self, ctx: commands.Context[SupportBuilderBot]) -> None:
        embed = make_embed("Bot Stats", None, color=discord.Color(0x00AAFF))
        embed.add_field(name="Servers", value=str(len(self.bot.guilds)), inline=True)
        embed.add_field(name="Users (approx.)", value=str(len(self.bot.users)), inline=True)
        embed.add_field(name="Uptime", value=format_uptime(self.bot.uptime_seconds), inline=True)
        await ctx.send(embed=embed)

    @commands.command(name="help", help="Show the help menu.")
    async def help_menu(self, ctx: commands.Context[SupportBuilderBot]) -> None:
        await ctx.send(embed=help_embed(self.bot.config.discord.prefix))

    @commands.command(name="about", help="Learn what this bot does.")
    async def about(self, ctx: commands.Context[SupportBuilderBot]) -> None:
        embed = make_embed(
            title="About This Bot",
            description=(
                "This bot is designed to build a **complete Bot Support Server** automatically:\n\n"
                "- Deletes old channels and roles (safe, within its permissions).\n"
                "- Creates modern, emoji-rich channels and categories.\n"
                "- Sets up roles and permissions for staff, support and members.\n"
                "- Sends rules embeds.\n"
                "- Installs a full ticket system with buttons and private channels.\n"
                "- Creates staff-only and logs areas for moderation.\n"
                "- Connects to a dedicated voice channel for 24/7 presence (muted & deafened)."
            ),
            color=discord.Color(0x2ECC71),
            footer=f"Use {self.bot.config.discord.prefix}setup to start a full server build (Admin only).",
        )
        await ctx.send(embed=embed)

    @commands.command(name="invite", help="Get the bot invite link.")
    async def invite(self, ctx: commands.Context[SupportBuilderBot]) -> None:
        client_id = self.bot.application_id or (self.bot.user.id if self.bot.user else None)
        if client_id is None:
            await ctx.reply("The invite link is not available yet.", mention_author=False)
            return
        embed = make_embed(
            title="Invite Me",
            description=(
                "Use the link below to invite this bot with Administrator permissions "
                "(required for full setup):\n\n"
                f"[Invite Link]({invite_url(client_id)})"
            ),
            color=discord.Color(0xF1C40F),
        )
        await ctx.send(embed=embed)


async def setup(bot: SupportBuilderBot) -> None:
    await bot.add_cog(GeneralCog(bot))
