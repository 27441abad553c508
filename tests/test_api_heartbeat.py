from __future__ import annotations

from pathlib import Path

import pytest

from apphub.api.server import create_app
from apphub.channel.hub import StatusChannel
from apphub.config import AppConfig, DatabaseConfig
from apphub.storage.database import DatabaseManager


def _make_app(tmp_path: Path):
    config = AppConfig()
    config.database = DatabaseConfig(url=f"sqlite:///{tmp_path / 'db.sqlite'}")
    db = DatabaseManager(config.database)
    channel = StatusChannel()
    return create_app(config, db_manager=db, channel=channel), channel, db


def _drain(connection) -> list[dict]:
    frames = []
    while not connection.queue.empty():
        frames.append(connection.queue.get_nowait())
    return frames


@pytest.mark.anyio
async def test_heartbeat_for_unknown_app_is_rejected_silently(
    tmp_path: Path, async_client_factory
) -> None:
    app, channel, _ = _make_app(tmp_path)
    observer = channel.connect(None)
    async with async_client_factory(app) as client:
        response = await client.post("/api/apps/missing/heartbeat", json={"status": "online"})

    assert response.status_code == 404
    assert response.json()["detail"] == "App not found or inactive"
    assert _drain(observer) == []


@pytest.mark.anyio
async def test_heartbeat_broadcasts_status(tmp_path: Path, async_client_factory) -> None:
    app, channel, db = _make_app(tmp_path)
    observer = channel.connect(None)
    async with async_client_factory(app) as client:
        created = await client.post("/api/apps", json={"name": "Docs", "url": "http://docs.test"})
        app_id = created.json()["id"]
        room_member = channel.connect(app_id)

        response = await client.post(
            f"/api/apps/{app_id}/heartbeat",
            json={"status": "online", "metadata": {"version": "2.1.0"}},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Heartbeat received"
    assert body["timestamp"]

    for connection in (observer, room_member):
        (message,) = _drain(connection)
        assert message["event"] == "app-status-changed"
        assert message["data"]["appId"] == app_id
        assert message["data"]["appName"] == "Docs"
        assert message["data"]["isHealthy"] is True
        assert message["data"]["metadata"] == {"version": "2.1.0"}

    record = channel.liveness.get(app_id)
    assert record is not None and record.source == "heartbeat"


@pytest.mark.anyio
async def test_heartbeat_without_body_defaults_online(tmp_path: Path, async_client_factory) -> None:
    app, channel, _ = _make_app(tmp_path)
    observer = channel.connect(None)
    async with async_client_factory(app) as client:
        created = await client.post("/api/apps", json={"name": "Docs", "url": "http://docs.test"})
        response = await client.post(f"/api/apps/{created.json()['id']}/heartbeat")

    assert response.status_code == 200
    (message,) = _drain(observer)
    assert message["data"]["status"] == "online"


@pytest.mark.anyio
async def test_offline_heartbeat_marks_unhealthy(tmp_path: Path, async_client_factory) -> None:
    app, channel, _ = _make_app(tmp_path)
    observer = channel.connect(None)
    async with async_client_factory(app) as client:
        created = await client.post("/api/apps", json={"name": "Docs", "url": "http://docs.test"})
        await client.post(f"/api/apps/{created.json()['id']}/heartbeat", json={"status": "offline"})

    (message,) = _drain(observer)
    assert message["data"]["isHealthy"] is False


@pytest.mark.anyio
async def test_heartbeat_for_inactive_app_is_rejected(tmp_path: Path, async_client_factory) -> None:
    app, channel, _ = _make_app(tmp_path)
    observer = channel.connect(None)
    async with async_client_factory(app) as client:
        created = await client.post("/api/apps", json={"name": "Docs", "url": "http://docs.test"})
        app_id = created.json()["id"]
        await client.put(f"/api/apps/{app_id}/activate", json={"isActive": False})
        response = await client.post(f"/api/apps/{app_id}/heartbeat", json={"status": "online"})

    assert response.status_code == 404
    assert _drain(observer) == []
