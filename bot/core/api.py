from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Header, HTTPException

from utils.time import format_uptime

if TYPE_CHECKING:
    from core.bot import SupportBuilderBot


def _auth(x_api_key: str | None, expected: str) -> None:
    if not expected:
        return
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


def create_api_app(bot: SupportBuilderBot) -> FastAPI:
    app = FastAPI(title="Support Builder API", version="1.0.0")

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {
            "status": "ok",
            "ready": bot.is_ready(),
            "guilds": len(bot.guilds),
            "uptime": format_uptime(bot.uptime_seconds),
        }

    @app.get("/guilds/{guild_id}/topology")
    async def topology(guild_id: int, x_api_key: str | None = Header(default=None)) -> dict[str, object]:
        _auth(x_api_key, bot.config.fastapi.api_key)
        entry = bot.registry.get(guild_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="Guild has not been provisioned")
        return entry.to_dict()

    @app.get("/guilds/{guild_id}/voice")
    async def voice(guild_id: int, x_api_key: str | None = Header(default=None)) -> dict[str, object]:
        _auth(x_api_key, bot.config.fastapi.api_key)
        guild = bot.get_guild(guild_id)
        if guild is None:
            raise HTTPException(status_code=404, detail="Unknown guild")
        return bot.voice_service.status(guild)

    return app
