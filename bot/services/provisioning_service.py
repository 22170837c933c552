from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

import discord

from core.errors import ProvisioningError, VoicePresenceError
from services import blueprint
from services.audit_service import AuditService
from services.blueprint import CategorySpec, ChannelKind, ChannelSpec, RoleSpec
from services.registry import GuildRegistry, GuildTopology
from services.voice_service import VoicePresenceService
from utils.constants import SETUP_REASON
from utils.embeds import chunked_field_embeds, make_embed

LOGGER = logging.getLogger(__name__)


class StatusSink(Protocol):
    """Where a setup run reports progress and its outcome."""

    async def progress(self, message: str) -> None: ...

    async def completed(self, embed: discord.Embed) -> bool: ...

    async def failed(self, message: str) -> None: ...


@dataclass(slots=True)
class StepResult:
    action: str
    name: str
    ok: bool
    object_id: int | None = None
    error: str | None = None


@dataclass(slots=True)
class ProvisioningReport:
    guild_id: int
    results: list[StepResult] = field(default_factory=list)
    topology: GuildTopology | None = None
    voice_connected: bool = False

    @property
    def failures(self) -> list[StepResult]:
        return [result for result in self.results if not result.ok]

    def count(self, action: str, *, ok: bool = True) -> int:
        return sum(1 for result in self.results if result.action == action and result.ok is ok)

    def summary(self) -> dict[str, object]:
        actions = sorted({result.action for result in self.results})
        return {
            "guild_id": self.guild_id,
            "succeeded": {action: self.count(action) for action in actions},
            "failed": {action: self.count(action, ok=False) for action in actions},
            "voice_connected": self.voice_connected,
        }


@dataclass(slots=True)
class BuiltChannels:
    categories: dict[str, discord.CategoryChannel] = field(default_factory=dict)
    channels: dict[str, discord.abc.GuildChannel] = field(default_factory=dict)


def _permissions_for(spec: RoleSpec) -> discord.Permissions:
    return discord.Permissions(**{name: True for name in spec.permissions})


def _failure(action: str, name: str, exc: discord.HTTPException) -> StepResult:
    return StepResult(action=action, name=name, ok=False, error=f"{type(exc).__name__}: {exc}")


class ProvisioningService:
    def __init__(
        self,
        registry: GuildRegistry,
        voice_service: VoicePresenceService,
        audit_service: AuditService,
        ticket_menu_factory: Callable[[], discord.ui.View | None],
        *,
        roles: Sequence[RoleSpec] = blueprint.ROLES,
        categories: Sequence[CategorySpec] = blueprint.CATEGORIES,
        channels: Sequence[ChannelSpec] = blueprint.CHANNELS,
    ) -> None:
        self.registry = registry
        self.voice_service = voice_service
        self.audit_service = audit_service
        self.ticket_menu_factory = ticket_menu_factory
        self.role_specs = tuple(roles)
        self.category_specs = tuple(categories)
        self.channel_specs = tuple(channels)

    async def wipe_guild(self, guild: discord.Guild, status: StatusSink) -> list[StepResult]:
        results: list[StepResult] = []

        await status.progress("Deleting channels and categories...")
        for channel in list(guild.channels):
            try:
                await channel.delete(reason=SETUP_REASON)
            except discord.HTTPException as exc:
                LOGGER.warning(
                    "Unable to delete channel %s: %s", channel.id, exc, extra={"guild_id": guild.id}
                )
                results.append(_failure("delete_channel", channel.name, exc))
                continue
            results.append(StepResult("delete_channel", channel.name, True, channel.id))

        await status.progress("Deleting manageable roles...")
        for role in list(guild.roles):
            if role.managed or role.is_default():
                continue
            try:
                await role.delete(reason=SETUP_REASON)
            except discord.HTTPException as exc:
                LOGGER.warning("Unable to delete role %s: %s", role.id, exc, extra={"guild_id": guild.id})
                results.append(_failure("delete_role", role.name, exc))
                continue
            results.append(StepResult("delete_role", role.name, True, role.id))
        return results

    async def create_roles(self, guild: discord.Guild) -> tuple[dict[str, discord.Role], list[StepResult]]:
        roles: dict[str, discord.Role] = {}
        results: list[StepResult] = []
        for spec in self.role_specs:
            colour = discord.Colour(spec.colour) if spec.colour is not None else discord.Colour.default()
            try:
                role = await guild.create_role(
                    name=spec.name,
                    permissions=_permissions_for(spec),
                    colour=colour,
                    hoist=spec.hoist,
                    mentionable=spec.mentionable,
                    reason=SETUP_REASON,
                )
            except discord.HTTPException as exc:
                LOGGER.warning("Unable to create role %s: %s", spec.key, exc, extra={"guild_id": guild.id})
                results.append(_failure("create_role", spec.name, exc))
                continue
            roles[spec.key] = role
            results.append(StepResult("create_role", spec.name, True, role.id))
        return roles, results

    def _category_overwrites(
        self, guild: discord.Guild, spec: CategorySpec, roles: dict[str, discord.Role]
    ) -> dict[discord.abc.Snowflake, discord.PermissionOverwrite]:
        if not spec.is_private:
            return {}
        overwrites: dict[discord.abc.Snowflake, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
        }
        for role_key in spec.visible_to:
            role = roles.get(role_key)
            if role is None:
                LOGGER.warning(
                    "Role %s missing, %s will not be visible to it", role_key, spec.key, extra={"guild_id": guild.id}
                )
                continue
            overwrites[role] = discord.PermissionOverwrite(view_channel=True)
        return overwrites

    async def create_channels(
        self, guild: discord.Guild, roles: dict[str, discord.Role]
    ) -> tuple[BuiltChannels, list[StepResult]]:
        built = BuiltChannels()
        results: list[StepResult] = []

        for spec in self.category_specs:
            try:
                category = await guild.create_category(
                    spec.name,
                    overwrites=self._category_overwrites(guild, spec, roles),
                    reason=SETUP_REASON,
                )
            except discord.HTTPException as exc:
                LOGGER.warning("Unable to create category %s: %s", spec.key, exc, extra={"guild_id": guild.id})
                results.append(_failure("create_category", spec.name, exc))
                continue
            built.categories[spec.key] = category
            results.append(StepResult("create_category", spec.name, True, category.id))

        for spec in self.channel_specs:
            parent = built.categories.get(spec.category)
            try:
                if spec.kind is ChannelKind.VOICE:
                    channel = await guild.create_voice_channel(spec.name, category=parent, reason=SETUP_REASON)
                else:
                    channel = await guild.create_text_channel(spec.name, category=parent, reason=SETUP_REASON)
            except discord.HTTPException as exc:
                LOGGER.warning("Unable to create channel %s: %s", spec.key, exc, extra={"guild_id": guild.id})
                results.append(_failure("create_channel", spec.name, exc))
                continue
            built.channels[spec.key] = channel
            results.append(StepResult("create_channel", spec.name, True, channel.id))
        return built, results

    def _require_essentials(self, built: BuiltChannels) -> None:
        missing = [key for key in blueprint.ESSENTIAL_CHANNEL_KEYS if key not in built.channels]
        if blueprint.TICKET_CATEGORY_KEY not in built.categories:
            missing.append(blueprint.TICKET_CATEGORY_KEY)
        if missing:
            raise ProvisioningError(f"Essential channels were not created: {', '.join(missing)}")

    async def post_static_content(self, built: BuiltChannels) -> list[StepResult]:
        results: list[StepResult] = []

        rules_channel = built.channels[blueprint.RULES_CHANNEL_KEY]
        embeds = chunked_field_embeds(
            blueprint.RULES,
            title=blueprint.RULES_TITLE,
            footer=blueprint.RULES_FOOTER,
            per_embed=blueprint.RULES_FIELDS_PER_EMBED,
        )
        try:
            message = await rules_channel.send(embeds=embeds)
        except discord.HTTPException as exc:
            LOGGER.warning("Unable to post rules: %s", exc)
            results.append(_failure("post_rules", rules_channel.name, exc))
        else:
            results.append(StepResult("post_rules", rules_channel.name, True, message.id))

        menu_channel = built.channels[blueprint.TICKET_CREATE_CHANNEL_KEY]
        menu_embed = make_embed(
            title="Support Tickets",
            description=(
                "Need help with the bot, found a bug, or want to discuss a partnership?\n\n"
                "Use the buttons below to create a private ticket. "
                "Our Support Team will assist you as soon as possible."
            ),
            color=discord.Color.blurple(),
        )
        view = self.ticket_menu_factory()
        try:
            if view is not None:
                message = await menu_channel.send(embed=menu_embed, view=view)
            else:
                message = await menu_channel.send(embed=menu_embed)
        except discord.HTTPException as exc:
            LOGGER.warning("Unable to post ticket menu: %s", exc)
            results.append(_failure("post_ticket_menu", menu_channel.name, exc))
        else:
            results.append(StepResult("post_ticket_menu", menu_channel.name, True, message.id))
        return results

    async def bootstrap_voice(self, guild: discord.Guild, channel: discord.VoiceChannel) -> bool:
        try:
            await self.voice_service.connect_to_voice(guild, channel)
        except VoicePresenceError:
            LOGGER.error("Error preparing bot voice in guild %s", guild.id, extra={"guild_id": guild.id})
            return False
        LOGGER.info(
            "Bot Voice channel ready and joined in guild %s -> %s",
            guild.id,
            channel.id,
            extra={"guild_id": guild.id, "channel_id": channel.id},
        )
        return True

    @staticmethod
    def build_topology(
        guild: discord.Guild, roles: dict[str, discord.Role], built: BuiltChannels
    ) -> GuildTopology:
        return GuildTopology(
            guild_id=guild.id,
            voice_channel_id=built.channels[blueprint.BOT_VOICE_CHANNEL_KEY].id,
            ticket_category_id=built.categories[blueprint.TICKET_CATEGORY_KEY].id,
            roles={key: role.id for key, role in roles.items()},
            categories={key: category.id for key, category in built.categories.items()},
            channels={key: channel.id for key, channel in built.channels.items()},
        )

    def _completion_embed(self, report: ProvisioningReport) -> discord.Embed:
        voice_line = (
            "• The bot is connected to its dedicated voice channel (muted & deafened)."
            if report.voice_connected
            else "• The bot could not join its voice channel; it will retry on next restart."
        )
        embed = make_embed(
            title="Setup Completed",
            description=(
                "The Bot Support Server has been successfully created.\n"
                "• Rules, channels, roles, and ticket system are now ready.\n"
                f"{voice_line}"
            ),
            color=discord.Color(0x00FF88),
        )
        if report.failures:
            embed.add_field(
                name="Skipped items",
                value=f"{len(report.failures)} item(s) could not be changed (see logs).",
                inline=False,
            )
        return embed

    async def _announce(
        self, guild: discord.Guild, built: BuiltChannels, status: StatusSink, embed: discord.Embed
    ) -> None:
        if await status.completed(embed):
            return
        target = guild.system_channel or built.channels.get(blueprint.GENERAL_CHAT_CHANNEL_KEY)
        if target is None:
            LOGGER.warning("No channel available for the setup completion notice in guild %s", guild.id)
            return
        try:
            await target.send(embed=embed)
        except discord.HTTPException:
            LOGGER.warning("Unable to post setup completion notice in guild %s", guild.id, exc_info=True)

    async def run_full_setup(
        self,
        guild: discord.Guild,
        requested_by: discord.abc.User,
        status: StatusSink,
    ) -> ProvisioningReport | None:
        """Wipe the guild and rebuild the blueprint.

        Per-item platform errors are recorded on the report and never abort a
        phase. Anything else aborts the run, leaves the registry untouched and
        is reported once through ``status``. Returns ``None`` on such a failure.
        """
        report = ProvisioningReport(guild_id=guild.id)
        LOGGER.info(
            "Full setup requested by %s (%s) in guild %s",
            requested_by,
            requested_by.id,
            guild.id,
            extra={"guild_id": guild.id, "user_id": requested_by.id},
        )
        try:
            report.results.extend(await self.wipe_guild(guild, status))

            await status.progress("Creating roles...")
            roles, role_results = await self.create_roles(guild)
            report.results.extend(role_results)

            await status.progress("Creating channels...")
            built, channel_results = await self.create_channels(guild, roles)
            report.results.extend(channel_results)
            self._require_essentials(built)

            await status.progress("Posting rules and ticket menu...")
            report.results.extend(await self.post_static_content(built))

            report.voice_connected = await self.bootstrap_voice(
                guild, built.channels[blueprint.BOT_VOICE_CHANNEL_KEY]
            )

            report.topology = self.build_topology(guild, roles, built)
            self.registry.commit(report.topology)
        except Exception:
            LOGGER.exception("Error in full setup for guild %s", guild.id, extra={"guild_id": guild.id})
            await status.failed(ProvisioningError().user_message)
            await self.audit_service.send_webhook_log(
                "Server setup failed",
                {**report.summary(), "requested_by": requested_by.id},
            )
            return None

        await self._announce(guild, built, status, self._completion_embed(report))
        await self.audit_service.send_webhook_log(
            "Server setup completed",
            {**report.summary(), "requested_by": requested_by.id},
        )
        LOGGER.info(
            "Full setup finished in guild %s with %s failed item(s)",
            guild.id,
            len(report.failures),
            extra={"guild_id": guild.id},
        )
        return report

    def discover_topology(self, guild: discord.Guild) -> GuildTopology | None:
        """Rebuild a topology by matching live channels and roles to blueprint names."""
        categories: dict[str, int] = {}
        for spec in self.category_specs:
            category = discord.utils.get(guild.categories, name=spec.name)
            if category is not None:
                categories[spec.key] = category.id

        channels: dict[str, int] = {}
        for spec in self.channel_specs:
            pool = guild.voice_channels if spec.kind is ChannelKind.VOICE else guild.text_channels
            parent_id = categories.get(spec.category)
            for channel in pool:
                if channel.name == spec.name and (parent_id is None or channel.category_id == parent_id):
                    channels[spec.key] = channel.id
                    break

        roles = {
            spec.key: role.id
            for spec in self.role_specs
            if (role := discord.utils.get(guild.roles, name=spec.name)) is not None
        }

        ticket_category_id = categories.get(blueprint.TICKET_CATEGORY_KEY)
        voice_channel_id = channels.get(blueprint.BOT_VOICE_CHANNEL_KEY)
        if ticket_category_id is None or voice_channel_id is None:
            return None
        return GuildTopology(
            guild_id=guild.id,
            voice_channel_id=voice_channel_id,
            ticket_category_id=ticket_category_id,
            roles=roles,
            categories=categories,
            channels=channels,
            discovered=True,
        )
