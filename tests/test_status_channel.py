from __future__ import annotations

import datetime as dt

from apphub.channel.auth import Identity
from apphub.channel.events import AppStatusChanged
from apphub.channel.hub import StatusChannel
from apphub.config import ChannelConfig


def _drain(connection) -> list[dict]:
    frames = []
    while not connection.queue.empty():
        frames.append(connection.queue.get_nowait())
    return frames


def test_room_assignment() -> None:
    channel = StatusChannel()
    assert channel.room_for("app-a", None) == "app-a"
    assert channel.room_for(None, Identity(user_id="u1")) == "container"
    assert channel.room_for(None, None) == "anonymous"


def test_targeted_emit_reaches_only_that_room() -> None:
    channel = StatusChannel()
    a = channel.connect("app-a")
    b = channel.connect("app-b")

    delivered = channel.emit_to_room("app-a", "command-event", {"command": "refresh"})

    assert delivered == 1
    assert _drain(a) == [{"event": "command-event", "data": {"command": "refresh"}}]
    assert _drain(b) == []


def test_broadcast_excludes_sender_only() -> None:
    channel = StatusChannel()
    a = channel.connect("app-a")
    b = channel.connect("app-b")
    c = channel.connect(None)

    assert channel.broadcast("platform-event", {"kind": "theme"}, exclude=a.id) == 2
    assert _drain(a) == []
    assert len(_drain(b)) == 1
    assert len(_drain(c)) == 1


def test_status_events_are_camel_case() -> None:
    channel = StatusChannel()
    observer = channel.connect(None)
    channel.publish_status(
        AppStatusChanged(
            app_id="app-a",
            app_name="Billing",
            status="online",
            is_healthy=True,
            timestamp=dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc),
        )
    )
    (message,) = _drain(observer)
    assert message["event"] == "app-status-changed"
    assert message["data"]["appId"] == "app-a"
    assert message["data"]["isHealthy"] is True


def test_command_event_with_target_goes_to_target_room() -> None:
    channel = StatusChannel()
    sender = channel.connect(None, Identity(user_id="u1"))
    target = channel.connect("app-a")
    other = channel.connect("app-b")

    channel.handle_client_message(
        sender, {"event": "command-event", "data": {"appId": "app-a", "command": "reload"}}
    )

    assert _drain(target) == [
        {
            "event": "command-event",
            "data": {"appId": "app-a", "command": "reload", "sourceAppId": "container"},
        }
    ]
    assert _drain(other) == []
    assert _drain(sender) == []


def test_command_event_without_target_is_broadcast_except_sender() -> None:
    channel = StatusChannel()
    sender = channel.connect("app-a")
    other = channel.connect("app-b")

    channel.handle_client_message(sender, {"event": "command-event", "data": {"command": "sync"}})

    assert _drain(sender) == []
    assert _drain(other)[0]["data"]["sourceAppId"] == "app-a"


def test_app_message_requires_target() -> None:
    channel = StatusChannel()
    sender = channel.connect("app-a")
    other = channel.connect("app-b")

    channel.handle_client_message(sender, {"event": "app-message", "data": {"text": "hi"}})

    assert _drain(sender) == [
        {"event": "error", "data": {"message": "app-message requires targetAppId"}}
    ]
    assert _drain(other) == []


def test_platform_event_reaches_everyone() -> None:
    channel = StatusChannel()
    sender = channel.connect("app-a")
    other = channel.connect("app-b")

    channel.handle_client_message(sender, {"event": "platform-event", "data": {"kind": "logout"}})

    assert len(_drain(sender)) == 1
    assert len(_drain(other)) == 1


def test_unknown_or_malformed_messages_are_rejected_to_sender() -> None:
    channel = StatusChannel()
    sender = channel.connect("app-a")
    other = channel.connect("app-b")

    channel.handle_client_message(sender, None)
    channel.handle_client_message(sender, {"event": "app-status-changed", "data": {}})
    channel.handle_client_message(sender, {"event": "platform-event", "data": "text"})

    frames = _drain(sender)
    assert [frame["event"] for frame in frames] == ["error", "error", "error"]
    assert "Unsupported event" in frames[1]["data"]["message"]
    assert _drain(other) == []


def test_full_send_queue_drops_without_blocking() -> None:
    channel = StatusChannel(ChannelConfig(send_queue_size=1))
    slow = channel.connect("app-a")

    assert channel.emit_to_room("app-a", "command-event", {"n": 1}) == 1
    assert channel.emit_to_room("app-a", "command-event", {"n": 2}) == 0
    assert _drain(slow) == [{"event": "command-event", "data": {"n": 1}}]


def test_disconnect_leaves_rooms() -> None:
    channel = StatusChannel()
    a = channel.connect("app-a")
    assert channel.connection_count == 1

    channel.disconnect(a)

    assert channel.connection_count == 0
    assert channel.emit_to_room("app-a", "command-event", {}) == 0
