from __future__ import annotations

import logging
import time

import discord
from discord.ext import commands

from core.config import AppConfig
from core.errors import handle_prefix_command_error
from services.audit_service import AuditService
from services.provisioning_service import ProvisioningService
from services.registry import GuildRegistry
from services.ticket_service import TicketService
from services.voice_service import VoicePresenceService
from views.ticket_panel import TicketMenuView

LOGGER = logging.getLogger(__name__)

_STATUSES = {
    "online": discord.Status.online,
    "idle": discord.Status.idle,
    "dnd": discord.Status.dnd,
    "invisible": discord.Status.invisible,
}


class SupportBuilderBot(commands.Bot):
    def __init__(self, config: AppConfig) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.messages = True
        intents.message_content = True
        intents.voice_states = True

        super().__init__(
            command_prefix=config.discord.prefix,
            intents=intents,
            application_id=config.discord.application_id,
            allowed_mentions=discord.AllowedMentions(
                everyone=config.discord.allowed_mentions_everyone,
                roles=True,
                users=True,
                replied_user=False,
            ),
            help_command=None,
        )
        self.config = config
        self.started_at = time.monotonic()
        self.registry = GuildRegistry()

        # Services are initialized during setup_hook.
        self.audit_service: AuditService
        self.voice_service: VoicePresenceService
        self.ticket_service: TicketService
        self.provisioning_service: ProvisioningService

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    def _ticket_menu(self) -> discord.ui.View:
        return TicketMenuView(self)

    async def setup_hook(self) -> None:
        self.audit_service = AuditService(self.config.webhook_log)
        self.voice_service = VoicePresenceService(self.config.voice, self.registry)
        self.ticket_service = TicketService(self.config.tickets, self.registry)
        self.provisioning_service = ProvisioningService(
            self.registry,
            self.voice_service,
            self.audit_service,
            ticket_menu_factory=self._ticket_menu,
        )

        for ext in self.config.enabled_extensions:
            try:
                await self.load_extension(ext)
                LOGGER.info("Loaded extension: %s", ext)
            except commands.ExtensionAlreadyLoaded:
                LOGGER.warning("Extension already loaded: %s", ext)
            except commands.ExtensionError:
                LOGGER.exception("Failed to load extension: %s", ext)

    async def on_ready(self) -> None:
        LOGGER.info("Bot ready as %s (%s)", self.user, self.user.id if self.user else "n/a")
        activity_type = self.config.discord.activity_type.lower()
        if activity_type == "playing":
            activity = discord.Game(name=self.config.discord.status_text)
        elif activity_type == "listening":
            activity = discord.Activity(
                type=discord.ActivityType.listening, name=self.config.discord.status_text
            )
        else:
            activity = discord.Activity(
                type=discord.ActivityType.watching, name=self.config.discord.status_text
            )
        status = _STATUSES.get(self.config.discord.status.lower(), discord.Status.dnd)
        await self.change_presence(status=status, activity=activity)

    async def on_command_error(self, ctx: commands.Context[commands.Bot], error: commands.CommandError) -> None:
        if ctx.command and ctx.command.has_error_handler():
            return
        await handle_prefix_command_error(ctx, error)

    async def close(self) -> None:
        if hasattr(self, "ticket_service"):
            await self.ticket_service.drain()
        await super().close()
