from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from apphub.api.server import create_app
from apphub.config import AppConfig, DatabaseConfig
from apphub.registry.models import HeartbeatAck
from apphub.sdk import HeartbeatClient, HubClient
from apphub.storage.database import DatabaseManager
from apphub.time_utils import utc_now


def _hub(tmp_path: Path) -> HubClient:
    config = AppConfig()
    config.database = DatabaseConfig(url=f"sqlite:///{tmp_path / 'db.sqlite'}")
    app = create_app(config, db_manager=DatabaseManager(config.database))

    def client_factory(base_url: str, timeout_s: float, headers=None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url=base_url,
            timeout=timeout_s,
            headers=headers,
        )

    return HubClient("http://testserver", http_client_factory=client_factory)


@pytest.mark.anyio
async def test_hub_client_register_heartbeat_and_lookup(tmp_path: Path) -> None:
    hub = _hub(tmp_path)
    request = {
        "name": "Billing",
        "url": "http://billing.test",
        "remoteUrl": "http://billing.test/assets",
        "scope": "billing",
        "module": "./App",
    }

    app = await hub.register(request)
    again = await hub.register(request)
    ack = await hub.heartbeat(app.id, "online", {"version": "1.0.0"})
    fetched = await hub.get_app(app.id)

    assert again.id == app.id
    assert app.integration_strategy.scope == "billing"
    assert ack.success is True
    assert fetched is not None
    assert fetched.last_heartbeat_at is not None
    assert await hub.get_app("missing") is None


@pytest.mark.anyio
async def test_hub_client_heartbeat_for_unknown_app_raises(tmp_path: Path) -> None:
    hub = _hub(tmp_path)
    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        await hub.heartbeat("missing")
    assert excinfo.value.response.status_code == 404


class FakeHub:
    def __init__(self, fail_first: bool = False) -> None:
        self.calls: list[tuple[str, str, dict]] = []
        self._fail_first = fail_first

    async def heartbeat(self, app_id: str, status: str = "online", metadata=None) -> HeartbeatAck:
        self.calls.append((app_id, status, dict(metadata or {})))
        if self._fail_first and len(self.calls) == 1:
            raise httpx.ConnectError("refused")
        return HeartbeatAck(timestamp=utc_now())


def test_heartbeat_client_loop_and_stop_sends_offline() -> None:
    hub = FakeHub()
    client = HeartbeatClient(hub, "billing", interval_s=0.01, metadata={"version": "1.0.0"})

    async def _run() -> None:
        client.start()
        assert client.is_running
        await asyncio.sleep(0.05)
        await client.stop()
        assert not client.is_running

    asyncio.run(_run())

    statuses = [status for _, status, _ in hub.calls]
    assert statuses[0] == "online"
    assert statuses[-1] == "offline"
    assert statuses.count("offline") == 1
    assert hub.calls[0][2] == {"version": "1.0.0"}


def test_heartbeat_loop_survives_failures() -> None:
    hub = FakeHub(fail_first=True)
    client = HeartbeatClient(hub, "billing", interval_s=0.01)

    async def _run() -> None:
        client.start()
        await asyncio.sleep(0.05)
        assert client.is_running
        await client.stop()

    asyncio.run(_run())

    assert len([call for call in hub.calls if call[1] == "online"]) >= 2


def test_update_config_changes_metadata_and_interval() -> None:
    hub = FakeHub()
    client = HeartbeatClient(hub, "billing", interval_s=60.0)

    async def _run() -> None:
        client.start()
        await asyncio.sleep(0)
        first = client._task
        await client.update_config(interval_s=0.01, metadata={"region": "eu"})
        assert first is not None and first.done()
        assert client.is_running
        await asyncio.sleep(0.05)
        await client.stop()

    asyncio.run(_run())

    assert client.interval_s == 0.01
    assert hub.calls[-1][2] == {"region": "eu"}
    assert len(hub.calls) >= 3
