from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import uvicorn

from core.api import create_api_app
from core.bot import SupportBuilderBot
from core.config import AppConfig, ConfigError, load_config
from core.logging import configure_logging

LOGGER = logging.getLogger("support_builder")


def _status_server(bot: SupportBuilderBot, config: AppConfig) -> uvicorn.Server | None:
    if not config.fastapi.enabled:
        return None
    if not config.fastapi.api_key:
        LOGGER.warning("Status API is enabled without an api_key; guild endpoints are public")
    return uvicorn.Server(
        uvicorn.Config(
            app=create_api_app(bot),
            host=config.fastapi.host,
            port=config.fastapi.port,
            log_level=config.logging.level.lower(),
        )
    )


async def _run_bot(config: AppConfig) -> None:
    bot = SupportBuilderBot(config=config)
    async with bot:
        server = _status_server(bot, config)
        api_task = asyncio.create_task(server.serve(), name="status-api") if server else None
        try:
            await bot.start(config.discord.token)
        finally:
            if server and api_task:
                server.should_exit = True
                await asyncio.gather(api_task, return_exceptions=True)


def main() -> None:
    default_path = Path(__file__).resolve().parent / "config" / "config.yaml"
    config_path = Path(os.getenv("SUPPORT_BUILDER_CONFIG", default_path))
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc
    configure_logging(config.logging)
    LOGGER.info("Starting support server builder with prefix %r", config.discord.prefix)
    asyncio.run(_run_bot(config))


if __name__ == "__main__":
    main()
