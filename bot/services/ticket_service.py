from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, replace
from enum import Enum

import discord

from core.config import TicketConfig
from core.errors import ValidationError
from services.blueprint import TICKET_CREATE_CHANNEL_KEY
from services.registry import GuildRegistry
from utils.constants import (
    MAX_CHANNEL_NAME_LENGTH,
    TICKET_CLOSE_REASON,
    TICKET_STATE_CLOSING,
    TICKET_STATE_OPEN,
    TICKET_TOPIC_PREFIX,
    TICKET_TYPES,
)
from utils.embeds import make_embed

LOGGER = logging.getLogger(__name__)

_TOPIC_PATTERN = re.compile(rf"^{TICKET_TOPIC_PREFIX}\|(?P<type>[a-z]+)\|opener:(?P<opener>\d+)")


class TicketState(str, Enum):
    OPEN = TICKET_STATE_OPEN
    CLOSING = TICKET_STATE_CLOSING


@dataclass(frozen=True, slots=True)
class Ticket:
    channel_id: int
    opener_id: int | None
    ticket_type: str
    state: TicketState = TicketState.OPEN


@dataclass(slots=True)
class TicketOpenResult:
    ticket: Ticket
    channel: discord.TextChannel
    created: bool


def build_topic(ticket_type: str, opener_id: int) -> str:
    return f"{TICKET_TOPIC_PREFIX}|{ticket_type}|opener:{opener_id}"


class TicketService:
    def __init__(self, config: TicketConfig, registry: GuildRegistry) -> None:
        self.config = config
        self.registry = registry
        self._closing: dict[int, asyncio.Task[None]] = {}

    @staticmethod
    def normalize_handle(name: str) -> str:
        handle = re.sub(r"\s+", "-", name.strip().lower())
        handle = re.sub(r"[^a-z0-9-]", "", handle)
        return re.sub(r"-{2,}", "-", handle).strip("-")

    def handle_for(self, user: discord.abc.User) -> str:
        return self.normalize_handle(user.name) or str(user.id)

    @staticmethod
    def build_channel_name(ticket_type: str, handle: str) -> str:
        prefix = TICKET_TYPES[ticket_type].channel_prefix
        return f"{prefix}-{handle}"[:MAX_CHANNEL_NAME_LENGTH]

    def resolve_ticket_category(
        self,
        guild: discord.Guild,
        origin: discord.abc.GuildChannel | None,
    ) -> discord.CategoryChannel:
        topology = self.registry.get(guild.id)
        if topology is not None:
            category = discord.utils.get(guild.categories, id=topology.ticket_category_id)
            if category is not None:
                return category
        fallback = getattr(origin, "category", None)
        if fallback is None:
            raise ValidationError("The ticket category is unavailable. Ask an administrator to run setup.")
        return fallback

    def _menu_channel_id(self, guild_id: int) -> int | None:
        topology = self.registry.get(guild_id)
        if topology is None:
            return None
        return topology.channels.get(TICKET_CREATE_CHANNEL_KEY)

    def find_open_ticket(
        self,
        guild: discord.Guild,
        category: discord.CategoryChannel,
        opener: discord.abc.User,
        handle: str,
    ) -> discord.TextChannel | None:
        menu_channel_id = self._menu_channel_id(guild.id)
        for channel in guild.text_channels:
            if channel.category_id != category.id or channel.id == menu_channel_id:
                continue
            if self.is_closing(channel.id):
                continue
            match = _TOPIC_PATTERN.match(channel.topic or "")
            if match is not None:
                if int(match.group("opener")) == opener.id:
                    return channel
            elif handle in channel.name.lower():
                return channel
        return None

    def _overwrites(
        self, guild: discord.Guild, opener: discord.Member
    ) -> dict[discord.abc.Snowflake, discord.PermissionOverwrite]:
        overwrites: dict[discord.abc.Snowflake, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            opener: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                read_message_history=True,
                attach_files=True,
            ),
        }
        if guild.me is not None:
            overwrites[guild.me] = discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                manage_channels=True,
            )
        topology = self.registry.get(guild.id)
        support_role_id = topology.roles.get("support_team") if topology else None
        support_role = guild.get_role(support_role_id) if support_role_id else None
        if support_role is not None:
            overwrites[support_role] = discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                read_message_history=True,
            )
        return overwrites

    async def open_ticket(
        self,
        guild: discord.Guild,
        opener: discord.Member,
        ticket_type: str,
        origin: discord.abc.GuildChannel | None,
        close_view: discord.ui.View | None = None,
    ) -> TicketOpenResult:
        if ticket_type not in TICKET_TYPES:
            raise ValidationError(f"Unknown ticket type: {ticket_type}")

        category = self.resolve_ticket_category(guild, origin)
        handle = self.handle_for(opener)
        existing = self.find_open_ticket(guild, category, opener, handle)
        if existing is not None:
            ticket = self.ticket_for_channel(existing) or Ticket(existing.id, opener.id, ticket_type)
            LOGGER.info(
                "User %s already has ticket channel %s in guild %s",
                opener.id,
                existing.id,
                guild.id,
                extra={"guild_id": guild.id, "user_id": opener.id},
            )
            return TicketOpenResult(ticket=ticket, channel=existing, created=False)

        channel = await guild.create_text_channel(
            name=self.build_channel_name(ticket_type, handle),
            category=category,
            overwrites=self._overwrites(guild, opener),
            topic=build_topic(ticket_type, opener.id),
            reason=f"Ticket opened by {opener} ({opener.id})",
        )
        LOGGER.info(
            "Opened %s ticket %s for user %s in guild %s",
            ticket_type,
            channel.id,
            opener.id,
            guild.id,
            extra={"guild_id": guild.id, "channel_id": channel.id, "user_id": opener.id},
        )

        embed = make_embed(
            title="New Ticket",
            description=(
                f"Hello {opener.mention},\n\n"
                "Please describe your issue in detail (what happened, steps to reproduce, screenshots, etc.).\n"
                "A member of our Support Team will respond as soon as possible."
            ),
            color=discord.Color(0x00B0F4),
        )
        embed.add_field(name="Ticket Type", value=ticket_type, inline=True)
        if close_view is not None:
            await channel.send(content=opener.mention, embed=embed, view=close_view)
        else:
            await channel.send(content=opener.mention, embed=embed)

        return TicketOpenResult(
            ticket=Ticket(channel_id=channel.id, opener_id=opener.id, ticket_type=ticket_type),
            channel=channel,
            created=True,
        )

    def ticket_for_channel(self, channel: discord.abc.GuildChannel) -> Ticket | None:
        state = TicketState.CLOSING if self.is_closing(channel.id) else TicketState.OPEN
        match = _TOPIC_PATTERN.match(getattr(channel, "topic", None) or "")
        if match and match.group("type") in TICKET_TYPES:
            return Ticket(channel.id, int(match.group("opener")), match.group("type"), state)

        # Channels without metadata still count when they sit in the ticket category.
        topology = self.registry.get(channel.guild.id)
        if topology is None or channel.category_id != topology.ticket_category_id:
            return None
        if channel.id == topology.channels.get(TICKET_CREATE_CHANNEL_KEY):
            return None
        for ticket_type in TICKET_TYPES.values():
            if channel.name.startswith(f"{ticket_type.channel_prefix}-"):
                return Ticket(channel.id, None, ticket_type.key, state)
        return None

    def close_ticket(self, channel: discord.abc.GuildChannel, requested_by: discord.abc.User) -> Ticket:
        ticket = self.ticket_for_channel(channel)
        if ticket is None:
            raise ValidationError("This is not a ticket channel.")
        if not self.is_closing(channel.id):
            task = asyncio.create_task(
                self._delete_later(channel, requested_by), name=f"ticket.close.{channel.id}"
            )
            self._closing[channel.id] = task
            task.add_done_callback(lambda _: self._closing.pop(channel.id, None))
            LOGGER.info(
                "Ticket %s closing in %ss (requested by %s)",
                channel.id,
                self.config.close_delay_seconds,
                requested_by.id,
                extra={"guild_id": channel.guild.id, "channel_id": channel.id, "user_id": requested_by.id},
            )
        return replace(ticket, state=TicketState.CLOSING)

    def is_closing(self, channel_id: int) -> bool:
        return channel_id in self._closing

    async def _delete_later(self, channel: discord.abc.GuildChannel, requested_by: discord.abc.User) -> None:
        await asyncio.sleep(self.config.close_delay_seconds)
        try:
            await channel.delete(reason=f"{TICKET_CLOSE_REASON} ({requested_by.id})")
        except discord.NotFound:
            LOGGER.info("Ticket channel %s was already deleted", channel.id)
        except discord.HTTPException:
            LOGGER.warning("Error closing ticket channel %s", channel.id, exc_info=True)

    async def drain(self) -> None:
        pending = list(self._closing.values())
        if pending:
            await asyncio.gather(*pending)
