from __future__ import annotations

import json
import logging

from core.logging import ContextFormatter, JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.provisioning_service", logging.INFO, __file__, 1, "Setup %s", ("done",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context() -> None:
    payload = json.loads(JsonFormatter().format(_record(guild_id=42, user_id=7)))

    assert payload["message"] == "Setup done"
    assert payload["guild_id"] == 42
    assert payload["user_id"] == 7
    assert "channel_id" not in payload


def test_plain_formatter_appends_context() -> None:
    formatter = ContextFormatter()

    assert formatter.format(_record(guild_id=42)).endswith("Setup done [guild_id=42]")
    assert formatter.format(_record()).endswith("Setup done")
