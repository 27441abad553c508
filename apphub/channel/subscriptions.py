"""Room membership and liveness state behind swappable stores.

The in-memory implementations are per-process. Running several host
instances requires implementations backed by a shared store so that rooms
and heartbeat state are visible to every instance.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Protocol


class SubscriptionStore(Protocol):
    def join(self, room: str, connection_id: str) -> None: ...

    def leave_all(self, connection_id: str) -> set[str]: ...

    def members(self, room: str) -> set[str]: ...

    def connections(self) -> set[str]: ...

    def rooms_of(self, connection_id: str) -> set[str]: ...


class InMemorySubscriptionStore:
    def __init__(self) -> None:
        self._rooms: dict[str, set[str]] = {}
        self._memberships: dict[str, set[str]] = {}

    def join(self, room: str, connection_id: str) -> None:
        self._rooms.setdefault(room, set()).add(connection_id)
        self._memberships.setdefault(connection_id, set()).add(room)

    def leave_all(self, connection_id: str) -> set[str]:
        rooms = self._memberships.pop(connection_id, set())
        for room in rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                self._rooms.pop(room, None)
        return rooms

    def members(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    def connections(self) -> set[str]:
        return set(self._memberships)

    def rooms_of(self, connection_id: str) -> set[str]:
        return set(self._memberships.get(connection_id, ()))


@dataclass(frozen=True)
class LivenessRecord:
    app_id: str
    status: str
    healthy: bool
    source: str
    at: dt.datetime


class LivenessStore(Protocol):
    def record(self, record: LivenessRecord) -> LivenessRecord | None: ...

    def get(self, app_id: str) -> LivenessRecord | None: ...

    def forget(self, app_id: str) -> None: ...


class InMemoryLivenessStore:
    """Last-write-wins liveness per app id."""

    def __init__(self) -> None:
        self._records: dict[str, LivenessRecord] = {}

    def record(self, record: LivenessRecord) -> LivenessRecord | None:
        previous = self._records.get(record.app_id)
        self._records[record.app_id] = record
        return previous

    def get(self, app_id: str) -> LivenessRecord | None:
        return self._records.get(app_id)

    def forget(self, app_id: str) -> None:
        self._records.pop(app_id, None)
