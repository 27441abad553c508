"""Room-based publish/subscribe hub for status fan-out."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any

from ..config import ChannelConfig
from ..logging_utils import get_logger
from ..observability.metrics import (
    channel_connections,
    channel_dropped_total,
    channel_events_total,
)
from .auth import Identity
from .events import (
    APP_MESSAGE,
    APP_REGISTERED,
    APP_STATUS_CHANGED,
    COMMAND_EVENT,
    ERROR_EVENT,
    PLATFORM_EVENT,
    AppRegistered,
    AppStatusChanged,
    frame,
)
from .subscriptions import (
    InMemoryLivenessStore,
    InMemorySubscriptionStore,
    LivenessStore,
    SubscriptionStore,
)


@dataclass
class ChannelConnection:
    id: str
    room: str
    identity: Identity | None
    queue: asyncio.Queue = field(repr=False)

    @property
    def anonymous(self) -> bool:
        return self.identity is None


class StatusChannel:
    def __init__(
        self,
        config: ChannelConfig | None = None,
        *,
        subscriptions: SubscriptionStore | None = None,
        liveness: LivenessStore | None = None,
    ) -> None:
        self._config = config or ChannelConfig()
        self._subscriptions = subscriptions or InMemorySubscriptionStore()
        self.liveness = liveness or InMemoryLivenessStore()
        self._connections: dict[str, ChannelConnection] = {}
        self._log = get_logger("channel")

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def room_for(self, app_id: str | None, identity: Identity | None) -> str:
        if app_id:
            return app_id
        if identity is not None:
            return self._config.container_room
        return self._config.anonymous_room

    def connect(self, app_id: str | None, identity: Identity | None = None) -> ChannelConnection:
        connection = ChannelConnection(
            id=uuid.uuid4().hex,
            room=self.room_for(app_id, identity),
            identity=identity,
            queue=asyncio.Queue(maxsize=self._config.send_queue_size),
        )
        self._connections[connection.id] = connection
        self._subscriptions.join(connection.room, connection.id)
        channel_connections.set(len(self._connections))
        self._log.info(
            "Channel connected: {} (room: {}, user: {})",
            connection.id,
            connection.room,
            identity.user_id if identity else "anonymous",
        )
        return connection

    def join(self, connection: ChannelConnection, room: str) -> None:
        self._subscriptions.join(room, connection.id)

    def disconnect(self, connection: ChannelConnection) -> None:
        self._connections.pop(connection.id, None)
        self._subscriptions.leave_all(connection.id)
        channel_connections.set(len(self._connections))
        self._log.info("Channel disconnected: {}", connection.id)

    def emit_to_room(
        self,
        room: str,
        event: str,
        data: Any,
        *,
        exclude: str | None = None,
    ) -> int:
        channel_events_total.labels(event, "room").inc()
        return self._deliver(self._subscriptions.members(room), frame(event, data), exclude)

    def broadcast(self, event: str, data: Any, *, exclude: str | None = None) -> int:
        channel_events_total.labels(event, "broadcast").inc()
        return self._deliver(set(self._connections), frame(event, data), exclude)

    def publish_status(self, event: AppStatusChanged, *, room: str | None = None) -> int:
        if room is not None:
            return self.emit_to_room(room, APP_STATUS_CHANGED, event)
        return self.broadcast(APP_STATUS_CHANGED, event)

    def publish_registered(self, event: AppRegistered) -> int:
        return self.broadcast(APP_REGISTERED, event)

    def handle_client_message(self, connection: ChannelConnection, message: Any) -> None:
        """Route a pass-through event sent by a connected observer."""

        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            self._reject(connection, "Malformed message: expected {event, data}")
            return
        event = message["event"]
        data = message.get("data")
        if not isinstance(data, dict):
            self._reject(connection, f"Event '{event}' requires an object payload")
            return
        payload = {**data, "sourceAppId": connection.room}
        if event == COMMAND_EVENT:
            target = data.get("appId")
            if target:
                self.emit_to_room(target, COMMAND_EVENT, payload, exclude=connection.id)
            else:
                self.broadcast(COMMAND_EVENT, payload, exclude=connection.id)
        elif event == APP_MESSAGE:
            target = data.get("targetAppId")
            if not target:
                self._reject(connection, "app-message requires targetAppId")
                return
            self.emit_to_room(target, APP_MESSAGE, payload, exclude=connection.id)
        elif event == PLATFORM_EVENT:
            self.broadcast(PLATFORM_EVENT, payload)
        else:
            self._reject(connection, f"Unsupported event '{event}'")

    def _reject(self, connection: ChannelConnection, reason: str) -> None:
        self._log.warning("Rejected message from {}: {}", connection.id, reason)
        self._deliver({connection.id}, frame(ERROR_EVENT, {"message": reason}), None)

    def _deliver(self, targets: set[str], payload: dict[str, Any], exclude: str | None) -> int:
        delivered = 0
        for connection_id in targets:
            if connection_id == exclude:
                continue
            connection = self._connections.get(connection_id)
            if connection is None:
                continue
            try:
                connection.queue.put_nowait(payload)
            except asyncio.QueueFull:
                channel_dropped_total.inc()
                self._log.warning(
                    "Send queue full for {}; dropped {}", connection_id, payload.get("event")
                )
                continue
            delivered += 1
        return delivered
