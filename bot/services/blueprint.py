"""Static description of the support server built by ``setup``.

Order matters only for display: roles are created top to bottom, categories
before channels, channels in the order listed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChannelKind(str, Enum):
    TEXT = "text"
    VOICE = "voice"


@dataclass(frozen=True, slots=True)
class RoleSpec:
    key: str
    name: str
    permissions: tuple[str, ...] = ()
    colour: int | None = None
    hoist: bool = False
    mentionable: bool = False


@dataclass(frozen=True, slots=True)
class CategorySpec:
    key: str
    name: str
    # Non-empty means @everyone is denied view and only these role keys may see it.
    visible_to: tuple[str, ...] = ()

    @property
    def is_private(self) -> bool:
        return bool(self.visible_to)


@dataclass(frozen=True, slots=True)
class ChannelSpec:
    key: str
    name: str
    category: str
    kind: ChannelKind = ChannelKind.TEXT


@dataclass(frozen=True, slots=True)
class RulesSection:
    name: str
    lines: tuple[str, ...]

    @property
    def value(self) -> str:
        return "\n".join(f"- {line}" for line in self.lines)


ADMIN_PERMISSIONS = ("administrator",)

ROLES: tuple[RoleSpec, ...] = (
    RoleSpec("system", "🤖 System", ADMIN_PERMISSIONS, hoist=True),
    RoleSpec("owner", "👑 Owner", ADMIN_PERMISSIONS, hoist=True),
    RoleSpec("head_admin", "🛡 Head Admin", ADMIN_PERMISSIONS, hoist=True),
    RoleSpec(
        "admin",
        "⚔️ Admin",
        ("manage_channels", "manage_guild", "kick_members", "ban_members", "manage_messages"),
        hoist=True,
    ),
    RoleSpec(
        "moderator",
        "🔧 Moderator",
        ("manage_messages", "mute_members", "deafen_members", "move_members", "manage_nicknames"),
        hoist=True,
    ),
    RoleSpec("support_team", "🎫 Support Team", ("manage_messages",), hoist=True),
    RoleSpec("security", "🛡 Security", ("manage_messages",), hoist=True),
    RoleSpec("partner", "🤝 Partner", colour=0x00FFEA),
    RoleSpec("vip", "🌟 VIP", colour=0xFFD700),
    RoleSpec("booster", "💎 Booster", colour=0xFF73FA),
    RoleSpec("verified", "✅ Verified", colour=0x00FF87),
    RoleSpec("member", "👥 Member", colour=0xFFFFFF),
    RoleSpec("bot", "🤖 Bot", colour=0x5865F2),
)

CATEGORIES: tuple[CategorySpec, ...] = (
    CategorySpec("welcome_info", "🏠 WELCOME & INFO"),
    CategorySpec("community", "👥 COMMUNITY"),
    CategorySpec("bot_support", "🛠 BOT SUPPORT"),
    CategorySpec("tickets", "🎫 TICKETS"),
    CategorySpec("voice_hangouts", "🔊 VOICE & HANGOUTS"),
    CategorySpec("staff_area", "🔐 STAFF AREA", ("admin", "head_admin", "moderator", "support_team")),
    CategorySpec("logs", "📊 LOGS", ("admin", "head_admin", "moderator")),
)

_TEXT = ChannelKind.TEXT
_VOICE = ChannelKind.VOICE

CHANNELS: tuple[ChannelSpec, ...] = (
    ChannelSpec("rules", "📜-rules", "welcome_info"),
    ChannelSpec("announcements", "📢-announcements", "welcome_info"),
    ChannelSpec("updates", "📰-updates", "welcome_info"),
    ChannelSpec("faq", "📌-faq", "welcome_info"),
    ChannelSpec("welcome_logs", "📥-welcome-logs", "welcome_info"),
    ChannelSpec("general_chat", "💬-general-chat", "community"),
    ChannelSpec("off_topic", "🎮-off-topic", "community"),
    ChannelSpec("media", "📷-media", "community"),
    ChannelSpec("bot_showcase", "🤖-bot-showcase", "community"),
    ChannelSpec("suggestions", "🧠-suggestions", "community"),
    ChannelSpec("help", "❓-help", "community"),
    ChannelSpec("partners", "🤝-partners", "community"),
    ChannelSpec("games", "🎲-games", "community"),
    ChannelSpec("top_supporters", "🏆-top-supporters", "community"),
    ChannelSpec("how_to_use", "📘-how-to-use-the-bot", "bot_support"),
    ChannelSpec("changelogs", "📂-bot-changelogs", "bot_support"),
    ChannelSpec("integrations", "🧩-integrations", "bot_support"),
    ChannelSpec("bug_reports", "🐞-bug-reports", "bot_support"),
    ChannelSpec("feature_requests", "✅-feature-requests", "bot_support"),
    ChannelSpec("beta_testing", "🧪-beta-testing", "bot_support"),
    ChannelSpec("ticket_create", "🎫-ticket-create", "tickets"),
    ChannelSpec("general_voice", "💬 General Voice", "voice_hangouts", _VOICE),
    ChannelSpec("gaming_1", "🎮 Gaming 1", "voice_hangouts", _VOICE),
    ChannelSpec("gaming_2", "🎮 Gaming 2", "voice_hangouts", _VOICE),
    ChannelSpec("meeting_room", "🎙 Meeting Room", "voice_hangouts", _VOICE),
    ChannelSpec("afk", "🛌 AFK", "voice_hangouts", _VOICE),
    ChannelSpec("bot_voice", "🔊 Bot Voice", "voice_hangouts", _VOICE),
    ChannelSpec("staff_chat", "📁-staff-chat", "staff_area"),
    ChannelSpec("mod_log", "🛡-mod-log", "staff_area"),
    ChannelSpec("admin_log", "📝-admin-log", "staff_area"),
    ChannelSpec("security_alerts", "🚨-security-alerts", "staff_area"),
    ChannelSpec("ticket_log", "📊-ticket-log", "staff_area"),
    ChannelSpec("join_leave_log", "👤-join-leave-log", "logs"),
    ChannelSpec("command_log", "🔧-command-log", "logs"),
    ChannelSpec("message_log", "🧹-message-log", "logs"),
    ChannelSpec("warning_log", "⚠️-warning-log", "logs"),
)

TICKET_CATEGORY_KEY = "tickets"
TICKET_CREATE_CHANNEL_KEY = "ticket_create"
RULES_CHANNEL_KEY = "rules"
BOT_VOICE_CHANNEL_KEY = "bot_voice"
GENERAL_CHAT_CHANNEL_KEY = "general_chat"

ESSENTIAL_CHANNEL_KEYS = (TICKET_CREATE_CHANNEL_KEY, RULES_CHANNEL_KEY, BOT_VOICE_CHANNEL_KEY)

RULES_TITLE = "AUTR-like General Server Rules"
RULES_FOOTER = "By staying in this server, you agree to follow all rules."
RULES_FIELDS_PER_EMBED = 3

RULES: tuple[RulesSection, ...] = (
    RulesSection(
        "General Respect Rules",
        (
            "No discrimination, hate speech, harassment, or threats.",
            "Be respectful and tolerant to all members.",
            "Use appropriate language in all channels.",
        ),
    ),
    RulesSection(
        "Personal Data Security",
        (
            "Do not share phone numbers, addresses, passwords, or other sensitive data.",
            "Do not share others' personal data without their explicit consent.",
        ),
    ),
    RulesSection(
        "Profile & Name Policy",
        (
            "Usernames, nicknames, and profile pictures must be appropriate.",
            "No NSFW, offensive, or extremely spammy emoji names.",
            "Links in usernames are not allowed.",
        ),
    ),
    RulesSection(
        "Advertisement & Promotion Ban",
        (
            "No unsolicited advertising or promotions.",
            "Do not send server invites or ads in DMs without permission.",
        ),
    ),
    RulesSection(
        "Religious & Political Topics",
        (
            "Avoid religious and political debates.",
            "No provoking, insulting, or inflammatory behavior regarding these topics.",
        ),
    ),
    RulesSection(
        "Direct Messages Behavior",
        (
            "Do not spam or harass users in DMs.",
            "Do not send unwanted invitations or advertisements in DMs.",
        ),
    ),
    RulesSection(
        "Community Order",
        (
            "Follow staff instructions at all times.",
            "Do not create drama or disturb the peace of the server.",
            "Report issues to the Support or Moderation team.",
        ),
    ),
    RulesSection(
        "Server Content & Copyright",
        (
            "Do not share pirated or illegal content.",
            "Respect copyrights and Discord's Terms of Service.",
        ),
    ),
)
