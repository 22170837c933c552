from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from core.errors import BotError
from utils.constants import TICKET_OPEN_PREFIX, TICKET_TYPES, TicketType
from utils.embeds import error_embed
from views.ticket_controls import TicketCloseView

if TYPE_CHECKING:
    from core.bot import SupportBuilderBot

LOGGER = logging.getLogger(__name__)


def _button_style_from_name(style_name: str) -> discord.ButtonStyle:
    mapping = {
        "primary": discord.ButtonStyle.primary,
        "secondary": discord.ButtonStyle.secondary,
        "success": discord.ButtonStyle.success,
        "danger": discord.ButtonStyle.danger,
    }
    return mapping.get(style_name.lower(), discord.ButtonStyle.primary)


async def handle_ticket_open(bot: SupportBuilderBot, interaction: discord.Interaction, ticket_type: str) -> None:
    if not interaction.guild or not isinstance(interaction.user, discord.Member):
        await interaction.response.send_message(embed=error_embed("Guild context is required."), ephemeral=True)
        return

    await interaction.response.defer(ephemeral=True, thinking=True)
    result = await bot.ticket_service.open_ticket(
        interaction.guild,
        interaction.user,
        ticket_type,
        origin=interaction.channel,
        close_view=TicketCloseView(bot),
    )
    if result.created:
        await interaction.followup.send(f"Your ticket has been created: {result.channel.mention}", ephemeral=True)
    else:
        await interaction.followup.send(f"You already have an open ticket: {result.channel.mention}", ephemeral=True)


class TicketOpenButton(discord.ui.Button["TicketMenuView"]):
    def __init__(self, bot: SupportBuilderBot, ticket_type: TicketType) -> None:
        super().__init__(
            label=ticket_type.label,
            emoji=ticket_type.emoji,
            style=_button_style_from_name(ticket_type.style),
            custom_id=f"{TICKET_OPEN_PREFIX}:{ticket_type.key}",
        )
        self.bot = bot
        self.ticket_type = ticket_type

    async def callback(self, interaction: discord.Interaction) -> None:
        await handle_ticket_open(self.bot, interaction, self.ticket_type.key)


class TicketMenuView(discord.ui.View):
    def __init__(self, bot: SupportBuilderBot) -> None:
        super().__init__(timeout=None)
        self.bot = bot
        for ticket_type in TICKET_TYPES.values():
            self.add_item(TicketOpenButton(bot, ticket_type))

    async def on_error(
        self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item[discord.ui.View]
    ) -> None:
        if isinstance(error, BotError):
            message = error.user_message
        else:
            LOGGER.exception("Ticket creation failed", exc_info=error)
            message = "Could not create your ticket. Please try again later."
        if interaction.response.is_done():
            await interaction.followup.send(embed=error_embed(message), ephemeral=True)
        else:
            await interaction.response.send_message(embed=error_embed(message), ephemeral=True)
