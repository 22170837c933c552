from __future__ import annotations

import logging
from dataclasses import dataclass

import discord
from discord.ext import commands

LOGGER = logging.getLogger(__name__)


class BotError(RuntimeError):
    user_message: str = "An unexpected error occurred."


@dataclass(slots=True)
class PermissionDeniedError(BotError):
    user_message: str = "You do not have permission to run this action."


@dataclass(slots=True)
class ValidationError(BotError):
    user_message: str = "The provided input is not valid."


@dataclass(slots=True)
class ProvisioningError(BotError):
    user_message: str = "An error occurred during setup. Check console logs."


@dataclass(slots=True)
class VoicePresenceError(BotError):
    user_message: str = "Could not join the voice channel."


async def send_error_response(
    target: commands.Context[commands.Bot] | discord.Interaction[commands.Bot], message: str
) -> None:
    embed = discord.Embed(title="Error", description=message, color=discord.Color.red())
    if isinstance(target, commands.Context):
        await target.reply(embed=embed, mention_author=False)
        return
    if target.response.is_done():
        await target.followup.send(embed=embed, ephemeral=True)
    else:
        await target.response.send_message(embed=embed, ephemeral=True)


def humanize_command_error(error: Exception) -> str:
    if isinstance(error, commands.CommandInvokeError):
        error = error.original
    if isinstance(error, BotError):
        return error.user_message
    if isinstance(error, commands.MissingPermissions):
        missing = ", ".join(perm.replace("_", " ") for perm in error.missing_permissions)
        return f"You need the `{missing}` permission to run this command."
    if isinstance(error, commands.NoPrivateMessage):
        return "This command can only be used inside a server."
    if isinstance(error, commands.MissingRequiredArgument):
        return f"Missing argument: `{error.param.name}`."
    if isinstance(error, commands.MemberNotFound):
        return "Please mention a member of this server."
    if isinstance(error, commands.CheckFailure):
        return "You are not authorized for this command."
    if isinstance(error, commands.BadArgument):
        return "Command argument was invalid."
    return "An unexpected command error occurred."


async def handle_prefix_command_error(
    ctx: commands.Context[commands.Bot], error: commands.CommandError
) -> None:
    if isinstance(error, commands.CommandNotFound):
        return
    message = humanize_command_error(error)
    if isinstance(error, commands.UserInputError | commands.CheckFailure):
        LOGGER.info(
            "Prefix command rejected. command=%s guild=%s user=%s reason=%s",
            getattr(ctx.command, "qualified_name", None),
            getattr(ctx.guild, "id", None),
            ctx.author.id,
            message,
        )
    else:
        LOGGER.exception(
            "Prefix command failed. command=%s guild=%s user=%s",
            getattr(ctx.command, "qualified_name", None),
            getattr(ctx.guild, "id", None),
            ctx.author.id,
            exc_info=error,
        )
    await send_error_response(ctx, message)
