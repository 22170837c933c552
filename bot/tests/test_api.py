from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from core.api import create_api_app
from services.registry import GuildRegistry, GuildTopology


def _bot(api_key: str = "") -> SimpleNamespace:
    registry = GuildRegistry()
    registry.commit(GuildTopology(guild_id=1, voice_channel_id=10, ticket_category_id=20, channels={"rules": 30}))
    guild = SimpleNamespace(id=1)
    voice_service = MagicMock()
    voice_service.status.return_value = {"guild_id": 1, "connected": True, "channel_id": 10}
    return SimpleNamespace(
        config=SimpleNamespace(fastapi=SimpleNamespace(api_key=api_key)),
        registry=registry,
        voice_service=voice_service,
        guilds=[guild],
        uptime_seconds=3_720.0,
        is_ready=lambda: True,
        get_guild=lambda guild_id: guild if guild_id == 1 else None,
    )


def test_health_reports_uptime() -> None:
    client = TestClient(create_api_app(_bot()))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "ready": True, "guilds": 1, "uptime": "0d 1h 2m"}


def test_topology_lookup() -> None:
    client = TestClient(create_api_app(_bot()))

    found = client.get("/guilds/1/topology")
    missing = client.get("/guilds/2/topology")

    assert found.status_code == 200
    assert found.json()["channels"] == {"rules": 30}
    assert missing.status_code == 404


def test_voice_status() -> None:
    client = TestClient(create_api_app(_bot()))

    assert client.get("/guilds/1/voice").json()["connected"] is True
    assert client.get("/guilds/3/voice").status_code == 404


def test_api_key_is_enforced() -> None:
    client = TestClient(create_api_app(_bot(api_key="secret")))

    assert client.get("/guilds/1/topology").status_code == 401
    assert client.get("/guilds/1/topology", headers={"X-Api-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200
