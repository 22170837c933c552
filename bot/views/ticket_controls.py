from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from core.errors import BotError
from utils.constants import TICKET_CLOSE_ID
from utils.embeds import error_embed

if TYPE_CHECKING:
    from core.bot import SupportBuilderBot

LOGGER = logging.getLogger(__name__)


async def handle_ticket_close(bot: SupportBuilderBot, interaction: discord.Interaction) -> None:
    channel = interaction.channel
    if interaction.guild is None or not isinstance(channel, discord.TextChannel):
        await interaction.response.send_message("This is not a ticket channel.", ephemeral=True)
        return
    if bot.ticket_service.ticket_for_channel(channel) is None:
        await interaction.response.send_message("This is not a ticket channel.", ephemeral=True)
        return

    delay = bot.config.tickets.close_delay_seconds
    await interaction.response.send_message(f"Closing ticket in {delay:g} seconds...", ephemeral=True)
    bot.ticket_service.close_ticket(channel, interaction.user)


class TicketCloseView(discord.ui.View):
    def __init__(self, bot: SupportBuilderBot) -> None:
        super().__init__(timeout=None)
        self.bot = bot

    @discord.ui.button(
        label="Close Ticket",
        style=discord.ButtonStyle.danger,
        emoji="✅",
        custom_id=TICKET_CLOSE_ID,
    )
    async def close_button(self, interaction: discord.Interaction, _: discord.ui.Button) -> None:
        await handle_ticket_close(self.bot, interaction)

    async def on_error(
        self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item[discord.ui.View]
    ) -> None:
        if isinstance(error, BotError):
            message = error.user_message
        else:
            LOGGER.exception("Ticket close failed", exc_info=error)
            message = "Action failed due to an unexpected error."
        if interaction.response.is_done():
            await interaction.followup.send(embed=error_embed(message), ephemeral=True)
        else:
            await interaction.response.send_message(embed=error_embed(message), ephemeral=True)
