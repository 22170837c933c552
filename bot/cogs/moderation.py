from __future__ import annotations

import logging

import discord
from discord.ext import commands

from core.bot import SupportBuilderBot
from core.errors import ValidationError
from utils.constants import BULK_DELETE_MAX_AGE, CLEAR_MAX, CLEAR_MIN

LOGGER = logging.getLogger(__name__)

DEFAULT_REASON = "No reason provided"


def parse_clear_amount(raw: str | None) -> int:
    try:
        amount = int(raw) if raw is not None else 0
    except ValueError:
        amount = 0
    if not CLEAR_MIN <= amount <= CLEAR_MAX:
        raise ValidationError(f"Please provide a number between {CLEAR_MIN} and {CLEAR_MAX}.")
    return amount


class ModerationCog(commands.Cog):
    def __init__(self, bot: SupportBuilderBot) -> None:
        self.bot = bot

    @commands.command(name="ban", help="Ban a member from the server.")
    @commands.guild_only()
    @commands.has_permissions(ban_members=True)
    async def ban(
        self, ctx: commands.Context[SupportBuilderBot], member: discord.Member, *, reason: str | None = None
    ) -> None:
        reason = reason or DEFAULT_REASON
        try:
            await member.ban(reason=reason)
        except discord.HTTPException:
            LOGGER.warning(
                "Ban of %s failed", member.id, exc_info=True, extra={"guild_id": ctx.guild.id, "user_id": member.id}
            )
            await ctx.reply("I could not ban this user.", mention_author=False)
            return
        LOGGER.info(
            "%s banned %s: %s", ctx.author.id, member.id, reason, extra={"guild_id": ctx.guild.id, "user_id": member.id}
        )
        await ctx.send(f"🔨 Banned {member} | Reason: {reason}")

    @commands.command(name="kick", help="Kick a member from the server.")
    @commands.guild_only()
    @commands.has_permissions(kick_members=True)
    async def kick(
        self, ctx: commands.Context[SupportBuilderBot], member: discord.Member, *, reason: str | None = None
    ) -> None:
        reason = reason or DEFAULT_REASON
        try:
            await member.kick(reason=reason)
        except discord.HTTPException:
            LOGGER.warning(
                "Kick of %s failed", member.id, exc_info=True, extra={"guild_id": ctx.guild.id, "user_id": member.id}
            )
            await ctx.reply("I could not kick this user.", mention_author=False)
            return
        LOGGER.info(
            "%s kicked %s: %s", ctx.author.id, member.id, reason, extra={"guild_id": ctx.guild.id, "user_id": member.id}
        )
        await ctx.send(f"👢 Kicked {member} | Reason: {reason}")

    @commands.command(name="clear", help="Bulk delete messages in the current channel.")
    @commands.guild_only()
    @commands.has_permissions(manage_messages=True)
    async def clear(self, ctx: commands.Context[SupportBuilderBot], amount: str | None = None) -> None:
        limit = parse_clear_amount(amount)
        # Older messages are skipped rather than deleted one by one.
        deleted = await ctx.channel.purge(
            limit=limit, after=discord.utils.utcnow() - BULK_DELETE_MAX_AGE, oldest_first=False
        )
        await ctx.send(f"🧹 Deleted {len(deleted)} messages.", delete_after=3)


async def setup(bot: SupportBuilderBot) -> None:
    await bot.add_cog(ModerationCog(bot))
