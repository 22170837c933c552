from __future__ import annotations

from unittest.mock import AsyncMock

import discord
import pytest
from conftest import FakeChannel, FakeGuild, FakeRole, RecordingSink, http_error, make_member

from core.config import WebhookLogConfig
from core.errors import VoicePresenceError
from services import blueprint
from services.audit_service import AuditService
from services.provisioning_service import ProvisioningService
from services.registry import GuildRegistry


def _spec_name(specs, key: str) -> str:
    return next(spec.name for spec in specs if spec.key == key)


def _old_channel(guild: FakeGuild, name: str) -> FakeChannel:
    return FakeChannel(guild, name, "text")


@pytest.mark.asyncio
async def test_full_setup_builds_blueprint(guild: FakeGuild, provisioning, registry: GuildRegistry) -> None:
    old_channel = _old_channel(guild, "old-general")
    guild.channels.append(old_channel)
    managed = FakeRole(guild, "Integration", managed=True)
    stale = FakeRole(guild, "Old Role")
    guild.roles.extend([managed, stale])
    sink = RecordingSink()

    report = await provisioning.run_full_setup(guild, make_member("admin"), sink)

    assert report is not None
    assert not report.failures
    assert old_channel not in guild.channels
    assert stale not in guild.roles
    assert managed in guild.roles
    assert guild.default_role in guild.roles

    created_roles = [role for role in guild.roles if role not in (managed, guild.default_role)]
    assert len(created_roles) == len(blueprint.ROLES) == 13
    assert len(guild.categories) == 7
    assert len(guild.text_channels) + len(guild.voice_channels) == 36

    topology = registry.get(guild.id)
    assert topology is report.topology
    ticket_category = guild.get_channel(topology.ticket_category_id)
    assert ticket_category.name == _spec_name(blueprint.CATEGORIES, "tickets")
    in_tickets = [channel for channel in guild.channels if channel.category_id == ticket_category.id]
    assert [channel.name for channel in in_tickets] == ["🎫-ticket-create"]

    for channel_id in topology.channels.values():
        assert guild.get_channel(channel_id) is not None
    for role_id in topology.roles.values():
        assert guild.get_role(role_id) is not None
    assert guild.get_channel(topology.voice_channel_id).name == "🔊 Bot Voice"

    assert report.voice_connected is True
    assert guild.voice_client.channel.id == topology.voice_channel_id
    assert len(sink.completed_embeds) == 1
    assert sink.completed_embeds[0].title == "Setup Completed"
    assert not sink.failures


@pytest.mark.asyncio
async def test_private_categories_hide_from_everyone(guild: FakeGuild, provisioning) -> None:
    await provisioning.run_full_setup(guild, make_member("admin"), RecordingSink())

    staff_area = discord.utils.get(guild.categories, name=_spec_name(blueprint.CATEGORIES, "staff_area"))
    assert staff_area.overwrites[guild.default_role].view_channel is False
    visible = {role.name for role in staff_area.overwrites if role is not guild.default_role}
    assert "🎫 Support Team" in visible

    community = discord.utils.get(guild.categories, name=_spec_name(blueprint.CATEGORIES, "community"))
    assert community.overwrites == {}


@pytest.mark.asyncio
async def test_rules_and_menu_are_posted(guild: FakeGuild, registry, voice_service) -> None:
    marker = object()
    service = ProvisioningService(
        registry, voice_service, AuditService(WebhookLogConfig()), ticket_menu_factory=lambda: marker
    )
    await service.run_full_setup(guild, make_member("admin"), RecordingSink())

    rules = discord.utils.get(guild.text_channels, name="📜-rules")
    embeds = rules.sent[0].kwargs["embeds"]
    assert len(embeds) == 3
    assert embeds[0].title == blueprint.RULES_TITLE
    assert embeds[-1].footer.text == blueprint.RULES_FOOTER
    assert sum(len(embed.fields) for embed in embeds) == len(blueprint.RULES)

    menu = discord.utils.get(guild.text_channels, name="🎫-ticket-create")
    assert menu.sent[0].kwargs["view"] is marker
    assert menu.sent[0].kwargs["embed"].title == "Support Tickets"


@pytest.mark.asyncio
async def test_item_failures_do_not_abort_setup(guild: FakeGuild, provisioning, registry) -> None:
    locked = _old_channel(guild, "locked")
    locked.delete_error = http_error(discord.Forbidden, 403, "Missing Permissions")
    guild.channels.append(locked)
    guild.fail_channel_names = {"🎲-games"}

    report = await provisioning.run_full_setup(guild, make_member("admin"), RecordingSink())

    assert report is not None
    failed = {(result.action, result.name) for result in report.failures}
    assert failed == {("delete_channel", "locked"), ("create_channel", "🎲-games")}
    assert "games" not in registry.get(guild.id).channels
    assert report.count("create_channel") == 35


@pytest.mark.asyncio
async def test_missing_essential_channel_aborts_without_commit(
    guild: FakeGuild, provisioning, registry
) -> None:
    guild.fail_channel_names = {"📜-rules"}
    sink = RecordingSink()

    report = await provisioning.run_full_setup(guild, make_member("admin"), sink)

    assert report is None
    assert guild.id not in registry
    assert sink.failures == ["An error occurred during setup. Check console logs."]
    assert not sink.completed_embeds


@pytest.mark.asyncio
async def test_missing_ticket_category_aborts(guild: FakeGuild, provisioning, registry) -> None:
    guild.fail_channel_names = {_spec_name(blueprint.CATEGORIES, "tickets")}
    sink = RecordingSink()

    assert await provisioning.run_full_setup(guild, make_member("admin"), sink) is None
    assert guild.id not in registry
    assert len(sink.failures) == 1


@pytest.mark.asyncio
async def test_voice_failure_still_commits(guild: FakeGuild, provisioning, registry) -> None:
    provisioning.voice_service.connect_to_voice = AsyncMock(side_effect=VoicePresenceError("no voice"))
    sink = RecordingSink()

    report = await provisioning.run_full_setup(guild, make_member("admin"), sink)

    assert report is not None
    assert report.voice_connected is False
    assert registry.get(guild.id) is report.topology
    assert "could not join" in sink.completed_embeds[0].description


@pytest.mark.asyncio
async def test_voice_socket_error_still_commits(guild: FakeGuild, provisioning, registry) -> None:
    guild.voice_connect_error = ConnectionResetError("udp reset")
    sink = RecordingSink()

    report = await provisioning.run_full_setup(guild, make_member("admin"), sink)

    assert report is not None
    assert report.voice_connected is False
    assert registry.get(guild.id) is report.topology
    assert not sink.failures
    assert sink.completed_embeds[0].title == "Setup Completed"


@pytest.mark.asyncio
async def test_completion_falls_back_to_general_chat(guild: FakeGuild, provisioning) -> None:
    sink = RecordingSink(deliver=False)

    await provisioning.run_full_setup(guild, make_member("admin"), sink)

    general = discord.utils.get(guild.text_channels, name="💬-general-chat")
    assert general.sent[-1].kwargs["embed"].title == "Setup Completed"


@pytest.mark.asyncio
async def test_second_run_replaces_topology(guild: FakeGuild, provisioning, registry) -> None:
    first = await provisioning.run_full_setup(guild, make_member("admin"), RecordingSink())
    second = await provisioning.run_full_setup(guild, make_member("admin"), RecordingSink())

    assert registry.get(guild.id) is second.topology
    assert second.topology.voice_channel_id != first.topology.voice_channel_id
    assert len(guild.categories) == 7
    assert len(guild.text_channels) + len(guild.voice_channels) == 36


@pytest.mark.asyncio
async def test_discover_topology_matches_live_state(guild: FakeGuild, provisioning, registry) -> None:
    report = await provisioning.run_full_setup(guild, make_member("admin"), RecordingSink())

    found = provisioning.discover_topology(guild)

    assert found is not None
    assert found.discovered is True
    assert found.voice_channel_id == report.topology.voice_channel_id
    assert found.ticket_category_id == report.topology.ticket_category_id
    assert dict(found.channels) == dict(report.topology.channels)
    assert dict(found.roles) == dict(report.topology.roles)


def test_discover_topology_needs_tickets_and_voice(guild: FakeGuild, provisioning) -> None:
    assert provisioning.discover_topology(guild) is None
