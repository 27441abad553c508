"""Status channel event payloads."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

APP_STATUS_CHANGED = "app-status-changed"
APP_REGISTERED = "app-registered"
COMMAND_EVENT = "command-event"
APP_MESSAGE = "app-message"
PLATFORM_EVENT = "platform-event"
ERROR_EVENT = "error"


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppStatusChanged(_EventModel):
    app_id: str
    app_name: str
    status: str
    is_healthy: bool
    timestamp: dt.datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class AppRegistered(_EventModel):
    app: dict[str, Any]
    timestamp: dt.datetime


def frame(event: str, data: Any) -> dict[str, Any]:
    """Wire envelope for one channel message."""

    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    return {"event": event, "data": data}
