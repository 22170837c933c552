from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp

from core.config import WebhookLogConfig
from utils.time import utc_now

LOGGER = logging.getLogger(__name__)


class AuditService:
    """Mirrors setup outcomes to an optional Discord webhook."""

    def __init__(self, config: WebhookLogConfig) -> None:
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.url)

    @staticmethod
    def build_payload(title: str, payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "content": None,
            "embeds": [
                {
                    "title": title,
                    "description": f"```json\n{json.dumps(payload, indent=2, default=str)[:3500]}\n```",
                    "timestamp": utc_now().isoformat(),
                }
            ],
        }

    async def send_webhook_log(self, title: str, payload: dict[str, Any]) -> bool:
        if not self.enabled:
            return False
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=10)) as session:
                async with session.post(self.config.url, json=self.build_payload(title, payload)) as response:
                    if response.status >= 400:
                        LOGGER.warning("Webhook audit log rejected with HTTP %s", response.status)
                        return False
        except (aiohttp.ClientError, TimeoutError):
            LOGGER.exception("Failed to send webhook audit log")
            return False
        return True
