"""Registry data model: app descriptors and integration strategies."""

from __future__ import annotations

import datetime as dt
import re
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import AppValidationError

REMOTE_MODULE = "module-federation"
IFRAME = "iframe"
WEB_COMPONENT = "web-component"
INTEGRATION_TYPES = (REMOTE_MODULE, IFRAME, WEB_COMPONENT)

_TAG_NAME_RE = re.compile(r"^[a-z][a-z0-9._]*-[a-z0-9._-]*$")


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Strategy(_WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RemoteModuleStrategy(_Strategy):
    type: Literal["module-federation"] = REMOTE_MODULE
    remote_url: str = Field(min_length=1)
    scope: str = Field(min_length=1)
    module: str = Field(min_length=1)

    @property
    def entry_url(self) -> str:
        url = self.remote_url.rstrip("/")
        if url.endswith(".js"):
            return url
        return f"{url}/remoteEntry.js"


class IframeStrategy(_Strategy):
    type: Literal["iframe"] = IFRAME


class WebComponentStrategy(_Strategy):
    type: Literal["web-component"] = WEB_COMPONENT
    tag_name: str
    script_url: str | None = None

    @field_validator("tag_name")
    @classmethod
    def _valid_tag(cls, value: str) -> str:
        if not _TAG_NAME_RE.match(value):
            raise ValueError(f"'{value}' is not a valid custom element name")
        return value


IntegrationStrategy = Annotated[
    Union[RemoteModuleStrategy, IframeStrategy, WebComponentStrategy],
    Field(discriminator="type"),
]


class AppDescriptor(_WireModel):
    id: str
    name: str
    base_url: str = Field(alias="url")
    icon_url: str | None = None
    is_active: bool = True
    integration_strategy: IntegrationStrategy
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    last_heartbeat_at: dt.datetime | None = None
    is_healthy: bool | None = None
    last_checked_at: dt.datetime | None = None

    @property
    def integration_type(self) -> str:
        return self.integration_strategy.type

    def to_wire(self, *, include_health: bool = True) -> dict[str, Any]:
        exclude = None if include_health else {"is_healthy", "last_checked_at"}
        payload = self.model_dump(mode="json", by_alias=True, exclude=exclude)
        payload["integrationType"] = self.integration_type
        return payload


class HealthCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_id: str
    healthy: bool
    checked_at: dt.datetime


class HealthReportEntry(_WireModel):
    id: str
    name: str
    url: str
    is_healthy: bool
    last_checked: dt.datetime


class AppRequest(_WireModel):
    """Registration body.

    Accepts either a nested ``integrationStrategy`` object or the flat fields
    older app SDKs send (``integrationType``, ``remoteUrl``, ``scope``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str | None = None
    url: str | None = None
    icon_url: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None
    integration_type: str | None = None
    integration_strategy: dict[str, Any] | None = None
    remote_url: str | None = None
    scope: str | None = None
    module: str | None = None
    tag_name: str | None = None
    script_url: str | None = None

    def validated_identity(self) -> tuple[str, str]:
        name = (self.name or "").strip()
        url = (self.url or "").strip()
        if not name or not url:
            raise AppValidationError("Name and URL are required")
        return name, url

    def build_strategy(self, default_type: str):
        if self.integration_strategy is not None:
            raw = dict(self.integration_strategy)
            raw.setdefault("type", self.integration_type or default_type)
        else:
            raw = {
                "type": self.integration_type or default_type,
                "remoteUrl": self.remote_url,
                "scope": self.scope,
                "module": self.module,
                "tagName": self.tag_name,
                "scriptUrl": self.script_url,
            }
        return parse_strategy(raw)


_STRATEGY_TYPES = {
    REMOTE_MODULE: RemoteModuleStrategy,
    IFRAME: IframeStrategy,
    WEB_COMPONENT: WebComponentStrategy,
}

_REQUIRED_FIELDS = {
    REMOTE_MODULE: ("remoteUrl", "scope", "module"),
    WEB_COMPONENT: ("tagName",),
}


def parse_strategy(raw: dict[str, Any]):
    strategy_type = raw.get("type")
    model = _STRATEGY_TYPES.get(strategy_type)
    if model is None:
        raise AppValidationError(
            f"Unsupported integrationType '{strategy_type}'",
            detail={"allowed": list(INTEGRATION_TYPES)},
        )
    missing = [
        key
        for key in _REQUIRED_FIELDS.get(strategy_type, ())
        if not _present(raw, key)
    ]
    if missing:
        raise AppValidationError(
            f"{strategy_type} apps require {', '.join(_REQUIRED_FIELDS[strategy_type])}",
            detail={"missing": missing},
        )
    fields = {key: value for key, value in raw.items() if value is not None}
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        raise AppValidationError(
            f"Invalid {strategy_type} configuration",
            detail={"errors": [err["msg"] for err in exc.errors()]},
        ) from exc


def _present(raw: dict[str, Any], camel_key: str) -> bool:
    snake_key = re.sub(r"(?<!^)(?=[A-Z])", "_", camel_key).lower()
    value = raw.get(camel_key, raw.get(snake_key))
    return isinstance(value, str) and bool(value.strip())


class ActivateRequest(_WireModel):
    is_active: bool


class HeartbeatRequest(_WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    status: str = "online"
    metadata: dict[str, Any] = Field(default_factory=dict)


class HeartbeatAck(_WireModel):
    success: bool = True
    message: str = "Heartbeat received"
    timestamp: dt.datetime
