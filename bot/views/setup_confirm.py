from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from core.errors import BotError, PermissionDeniedError
from utils.constants import SETUP_CONFIRM_NO, SETUP_CONFIRM_YES
from utils.embeds import error_embed

if TYPE_CHECKING:
    from core.bot import SupportBuilderBot

LOGGER = logging.getLogger(__name__)


class InteractionStatusSink:
    """Reports setup progress through an interaction's followup webhook.

    The channel the interaction came from is usually deleted by the wipe, so
    every send is best-effort.
    """

    def __init__(self, interaction: discord.Interaction) -> None:
        self.interaction = interaction

    async def progress(self, message: str) -> None:
        try:
            await self.interaction.followup.send(message, ephemeral=True)
        except discord.HTTPException:
            LOGGER.debug("Setup progress notice dropped: %s", message)

    async def completed(self, embed: discord.Embed) -> bool:
        try:
            await self.interaction.followup.send(embed=embed)
        except discord.HTTPException:
            LOGGER.info("Setup completion notice could not use the interaction, falling back")
            return False
        return True

    async def failed(self, message: str) -> None:
        try:
            await self.interaction.followup.send(message, ephemeral=True)
        except discord.HTTPException:
            LOGGER.warning("Setup failure notice could not be delivered")


async def handle_setup_confirmation(
    bot: SupportBuilderBot, interaction: discord.Interaction, accepted: bool
) -> None:
    if interaction.guild is None or not interaction.permissions.administrator:
        raise PermissionDeniedError("Only administrators can confirm setup.")

    if not accepted:
        await interaction.response.edit_message(content="Setup cancelled.", embed=None, view=None)
        return

    await interaction.response.edit_message(content="Starting full server setup...", embed=None, view=None)
    await bot.provisioning_service.run_full_setup(
        interaction.guild,
        interaction.user,
        InteractionStatusSink(interaction),
    )


class SetupConfirmView(discord.ui.View):
    def __init__(self, bot: SupportBuilderBot) -> None:
        super().__init__(timeout=None)
        self.bot = bot

    @discord.ui.button(
        label="Yes, reset & build",
        style=discord.ButtonStyle.danger,
        emoji="✅",
        custom_id=SETUP_CONFIRM_YES,
    )
    async def confirm_button(self, interaction: discord.Interaction, _: discord.ui.Button) -> None:
        await handle_setup_confirmation(self.bot, interaction, accepted=True)

    @discord.ui.button(
        label="Cancel",
        style=discord.ButtonStyle.secondary,
        emoji="❌",
        custom_id=SETUP_CONFIRM_NO,
    )
    async def cancel_button(self, interaction: discord.Interaction, _: discord.ui.Button) -> None:
        await handle_setup_confirmation(self.bot, interaction, accepted=False)

    async def on_error(
        self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item[discord.ui.View]
    ) -> None:
        if isinstance(error, BotError):
            message = error.user_message
        else:
            LOGGER.exception("Setup confirmation failed", exc_info=error)
            message = "Action failed due to an unexpected error."
        if interaction.response.is_done():
            await interaction.followup.send(embed=error_embed(message), ephemeral=True)
        else:
            await interaction.response.send_message(embed=error_embed(message), ephemeral=True)
