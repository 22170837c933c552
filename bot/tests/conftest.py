from __future__ import annotations

import asyncio
import itertools
from types import SimpleNamespace
from typing import Any

import discord
import pytest

from core.config import TicketConfig, VoiceConfig, WebhookLogConfig
from services.audit_service import AuditService
from services.provisioning_service import ProvisioningService
from services.registry import GuildRegistry
from services.ticket_service import TicketService
from services.voice_service import VoicePresenceService

_ids = itertools.count(1_000)


def http_error(cls: type[discord.HTTPException], status: int, message: str) -> discord.HTTPException:
    return cls(SimpleNamespace(status=status, reason=message), message)


class FakeMessage:
    def __init__(self, **kwargs: Any) -> None:
        self.id = next(_ids)
        self.kwargs = kwargs


class FakeMember:
    def __init__(self, name: str, member_id: int | None = None) -> None:
        self.id = member_id or next(_ids)
        self.name = name

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"

    def __str__(self) -> str:
        return self.name


class FakeRole:
    def __init__(
        self, guild: FakeGuild, name: str, *, managed: bool = False, default: bool = False, **kwargs: Any
    ) -> None:
        self.id = next(_ids)
        self.guild = guild
        self.name = name
        self.managed = managed
        self._default = default
        self.kwargs = kwargs
        self.delete_error: discord.HTTPException | None = None

    def is_default(self) -> bool:
        return self._default

    async def delete(self, *, reason: str | None = None) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.guild.roles.remove(self)


class FakeChannel:
    def __init__(
        self,
        guild: FakeGuild,
        name: str,
        kind: str,
        *,
        category: FakeChannel | None = None,
        topic: str | None = None,
        overwrites: dict[Any, Any] | None = None,
    ) -> None:
        self.id = next(_ids)
        self.guild = guild
        self.name = name
        self.kind = kind
        self.category = category
        self.topic = topic
        self.overwrites = overwrites or {}
        self.sent: list[FakeMessage] = []
        self.deleted = False
        self.delete_error: discord.HTTPException | None = None
        self.connect_error: Exception | None = None
        self.connect_calls: list[dict[str, Any]] = []

    @property
    def category_id(self) -> int | None:
        return self.category.id if self.category is not None else None

    @property
    def mention(self) -> str:
        return f"<#{self.id}>"

    async def send(self, content: str | None = None, **kwargs: Any) -> FakeMessage:
        message = FakeMessage(content=content, **kwargs)
        self.sent.append(message)
        return message

    async def delete(self, *, reason: str | None = None) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        if self.deleted:
            raise http_error(discord.NotFound, 404, "Unknown Channel")
        self.deleted = True
        self.guild.channels.remove(self)

    async def connect(self, **kwargs: Any) -> FakeVoiceClient:
        self.connect_calls.append(kwargs)
        await asyncio.sleep(0)
        error = self.connect_error or self.guild.voice_connect_error
        if error is not None:
            raise error
        client = FakeVoiceClient(self)
        self.guild.voice_client = client
        return client


class FakeVoiceClient:
    def __init__(self, channel: FakeChannel) -> None:
        self.channel = channel
        self.disconnected = False

    async def disconnect(self, *, force: bool = False) -> None:
        self.disconnected = True
        if self.channel.guild.voice_client is self:
            self.channel.guild.voice_client = None


class FakeGuild:
    def __init__(self, guild_id: int | None = None) -> None:
        self.id = guild_id or next(_ids)
        self.channels: list[FakeChannel] = []
        self.default_role = FakeRole(self, "@everyone", default=True)
        self.roles: list[FakeRole] = [self.default_role]
        self.me = FakeMember("builder")
        self.voice_client: FakeVoiceClient | None = None
        self.system_channel: FakeChannel | None = None
        self.fail_channel_names: set[str] = set()
        self.voice_connect_error: Exception | None = None

    @property
    def text_channels(self) -> list[FakeChannel]:
        return [channel for channel in self.channels if channel.kind == "text"]

    @property
    def voice_channels(self) -> list[FakeChannel]:
        return [channel for channel in self.channels if channel.kind == "voice"]

    @property
    def categories(self) -> list[FakeChannel]:
        return [channel for channel in self.channels if channel.kind == "category"]

    def get_channel(self, channel_id: int) -> FakeChannel | None:
        return next((channel for channel in self.channels if channel.id == channel_id), None)

    def get_role(self, role_id: int) -> FakeRole | None:
        return next((role for role in self.roles if role.id == role_id), None)

    def _add(self, name: str, kind: str, **kwargs: Any) -> FakeChannel:
        if name in self.fail_channel_names:
            raise http_error(discord.Forbidden, 403, "Missing Permissions")
        channel = FakeChannel(self, name, kind, **kwargs)
        self.channels.append(channel)
        return channel

    async def create_role(self, *, name: str, reason: str | None = None, **kwargs: Any) -> FakeRole:
        role = FakeRole(self, name, **kwargs)
        self.roles.append(role)
        return role

    async def create_category(
        self, name: str, *, overwrites: dict[Any, Any] | None = None, reason: str | None = None
    ) -> FakeChannel:
        return self._add(name, "category", overwrites=overwrites)

    async def create_text_channel(
        self,
        name: str,
        *,
        category: FakeChannel | None = None,
        overwrites: dict[Any, Any] | None = None,
        topic: str | None = None,
        reason: str | None = None,
    ) -> FakeChannel:
        return self._add(name, "text", category=category, overwrites=overwrites, topic=topic)

    async def create_voice_channel(
        self, name: str, *, category: FakeChannel | None = None, reason: str | None = None
    ) -> FakeChannel:
        return self._add(name, "voice", category=category)


class RecordingSink:
    def __init__(self, deliver: bool = True) -> None:
        self.deliver = deliver
        self.progress_messages: list[str] = []
        self.completed_embeds: list[discord.Embed] = []
        self.failures: list[str] = []

    async def progress(self, message: str) -> None:
        self.progress_messages.append(message)

    async def completed(self, embed: discord.Embed) -> bool:
        self.completed_embeds.append(embed)
        return self.deliver

    async def failed(self, message: str) -> None:
        self.failures.append(message)


def make_member(name: str, member_id: int | None = None) -> FakeMember:
    return FakeMember(name, member_id)


@pytest.fixture
def guild() -> FakeGuild:
    return FakeGuild()


@pytest.fixture
def registry() -> GuildRegistry:
    return GuildRegistry()


@pytest.fixture
def voice_service(registry: GuildRegistry) -> VoicePresenceService:
    return VoicePresenceService(VoiceConfig(connect_timeout_seconds=1.0), registry)


@pytest.fixture
def ticket_service(registry: GuildRegistry) -> TicketService:
    return TicketService(TicketConfig(close_delay_seconds=0.01), registry)


@pytest.fixture
def provisioning(registry: GuildRegistry, voice_service: VoicePresenceService) -> ProvisioningService:
    return ProvisioningService(
        registry,
        voice_service,
        AuditService(WebhookLogConfig()),
        ticket_menu_factory=lambda: None,
    )
