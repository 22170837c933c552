from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv


class ConfigError(RuntimeError):
    pass


DEFAULT_EXTENSIONS = [
    "cogs.events",
    "cogs.admin",
    "cogs.tickets",
    "cogs.moderation",
    "cogs.general",
]


@dataclass(slots=True)
class DiscordConfig:
    token: str
    prefix: str = "."
    application_id: int | None = None
    status: str = "dnd"
    activity_type: str = "playing"
    status_text: str = "Building support servers | .setup"
    allowed_mentions_everyone: bool = False


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    directory: str = "logs"
    file_name: str = "bot.log"
    max_bytes: int = 10_000_000
    backup_count: int = 10
    json_console: bool = False


@dataclass(slots=True)
class TicketConfig:
    close_delay_seconds: float = 5.0


@dataclass(slots=True)
class VoiceConfig:
    channel_marker: str = "Bot Voice"
    self_mute: bool = True
    self_deaf: bool = True
    connect_timeout_seconds: float = 30.0
    reconnect_on_ready: bool = True


@dataclass(slots=True)
class WebhookLogConfig:
    enabled: bool = False
    url: str = ""


@dataclass(slots=True)
class FastApiConfig:
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    api_key: str = ""


@dataclass(slots=True)
class AppConfig:
    discord: DiscordConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tickets: TicketConfig = field(default_factory=TicketConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    webhook_log: WebhookLogConfig = field(default_factory=WebhookLogConfig)
    fastapi: FastApiConfig = field(default_factory=FastApiConfig)
    enabled_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))


def _get_env_str(key: str, fallback: str | None = None) -> str | None:
    value = os.getenv(key)
    if value is None:
        return fallback
    cleaned = value.strip()
    return cleaned if cleaned else fallback


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _deep_get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return raw


def load_config(config_path: Path) -> AppConfig:
    env_path = config_path.parent.parent / ".env"
    load_dotenv(env_path)
    raw = _load_yaml(config_path)

    discord_token = _get_env_str("DISCORD_TOKEN", _deep_get(raw, "discord", "token"))
    if not discord_token or "${" in discord_token:
        raise ConfigError("DISCORD_TOKEN is required")

    prefix = str(_get_env_str("BOT_PREFIX", _deep_get(raw, "discord", "prefix", default=".")))
    application_id = _get_env_str("DISCORD_APPLICATION_ID")
    discord_cfg = DiscordConfig(
        token=discord_token,
        prefix=prefix,
        application_id=(
            int(application_id) if application_id else _deep_get(raw, "discord", "application_id")
        ),
        status=str(_deep_get(raw, "discord", "status", default="dnd")),
        activity_type=str(_deep_get(raw, "discord", "activity_type", default="playing")),
        status_text=str(
            _deep_get(raw, "discord", "status_text", default=f"Building support servers | {prefix}setup")
        ),
        allowed_mentions_everyone=_as_bool(
            _deep_get(raw, "discord", "allowed_mentions_everyone"), False
        ),
    )

    logging_cfg = LoggingConfig(
        level=str(_get_env_str("LOG_LEVEL", _deep_get(raw, "logging", "level", default="INFO"))),
        directory=str(_deep_get(raw, "logging", "directory", default="logs")),
        file_name=str(_deep_get(raw, "logging", "file_name", default="bot.log")),
        max_bytes=_as_int(_deep_get(raw, "logging", "max_bytes"), 10_000_000),
        backup_count=_as_int(_deep_get(raw, "logging", "backup_count"), 10),
        json_console=_as_bool(_deep_get(raw, "logging", "json_console"), False),
    )

    ticket_cfg = TicketConfig(
        close_delay_seconds=_as_float(_deep_get(raw, "tickets", "close_delay_seconds"), 5.0),
    )

    voice_cfg = VoiceConfig(
        channel_marker=str(_deep_get(raw, "voice", "channel_marker", default="Bot Voice")),
        self_mute=_as_bool(_deep_get(raw, "voice", "self_mute"), True),
        self_deaf=_as_bool(_deep_get(raw, "voice", "self_deaf"), True),
        connect_timeout_seconds=_as_float(_deep_get(raw, "voice", "connect_timeout_seconds"), 30.0),
        reconnect_on_ready=_as_bool(_deep_get(raw, "voice", "reconnect_on_ready"), True),
    )

    webhook_cfg = WebhookLogConfig(
        enabled=_as_bool(_deep_get(raw, "webhook_log", "enabled"), False),
        url=str(_get_env_str("WEBHOOK_LOG_URL", _deep_get(raw, "webhook_log", "url", default=""))),
    )

    fastapi_cfg = FastApiConfig(
        enabled=_as_bool(_deep_get(raw, "fastapi", "enabled"), False),
        host=str(_deep_get(raw, "fastapi", "host", default="0.0.0.0")),
        port=_as_int(_deep_get(raw, "fastapi", "port"), 8000),
        api_key=str(_get_env_str("STATUS_API_KEY", _deep_get(raw, "fastapi", "api_key", default=""))),
    )

    enabled_extensions = [
        str(ext) for ext in list(_deep_get(raw, "enabled_extensions", default=DEFAULT_EXTENSIONS))
    ]

    return AppConfig(
        discord=discord_cfg,
        logging=logging_cfg,
        tickets=ticket_cfg,
        voice=voice_cfg,
        webhook_log=webhook_cfg,
        fastapi=fastapi_cfg,
        enabled_extensions=enabled_extensions,
    )
