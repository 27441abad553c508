"""Periodic heartbeat sender for a running federated app."""

from __future__ import annotations

import asyncio
from typing import Any

from ..logging_utils import get_logger
from ..registry.models import HeartbeatAck
from .client import HubClient

DEFAULT_INTERVAL_S = 30.0


class HeartbeatClient:
    def __init__(
        self,
        hub: HubClient,
        app_id: str,
        *,
        interval_s: float = DEFAULT_INTERVAL_S,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._hub = hub
        self.app_id = app_id
        self.interval_s = interval_s
        self.metadata = dict(metadata or {})
        self._task: asyncio.Task | None = None
        self._log = get_logger("sdk.heartbeat")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def send(self, status: str = "online", metadata: dict[str, Any] | None = None) -> HeartbeatAck:
        payload = {**self.metadata, **(metadata or {})}
        ack = await self._hub.heartbeat(self.app_id, status, payload)
        self._log.debug("Heartbeat sent for {}: {}", self.app_id, status)
        return ack

    def start(self) -> None:
        if self.is_running:
            self._log.warning("Heartbeat already running for {}", self.app_id)
            return
        self._task = asyncio.create_task(self._run())
        self._log.info("Heartbeat started for {} every {}s", self.app_id, self.interval_s)

    async def stop(self) -> None:
        """Cancel the loop and tell the hub the app went offline."""

        task, self._task = self._task, None
        await _cancel(task)
        try:
            await self.send("offline")
        except Exception as exc:
            self._log.error("Failed to send offline heartbeat for {}: {}", self.app_id, exc)
        self._log.info("Heartbeat stopped for {}", self.app_id)

    async def update_config(
        self,
        *,
        interval_s: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Takes effect on the next tick; a running loop is restarted for a new interval."""

        if metadata is not None:
            self.metadata = dict(metadata)
        if interval_s is not None and interval_s != self.interval_s:
            self.interval_s = interval_s
            if self.is_running:
                await _cancel(self._task)
                self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            try:
                await self.send("online")
            except Exception as exc:
                self._log.error("Heartbeat failed for {}: {}", self.app_id, exc)
            await asyncio.sleep(self.interval_s)


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
