"""Configuration loading and validation using Pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    url: str = Field(
        "sqlite:///./apphub.db",
        description="SQLAlchemy URL for the registry store.",
    )
    echo: bool = False
    pool_size: int = Field(10, ge=1)
    max_overflow: int = Field(10, ge=0)


class APIConfig(BaseModel):
    host: str = Field("127.0.0.1")
    port: int = Field(3001, ge=1, le=65535)
    prefix: str = Field("/api", description="Mount point for the registry routes.")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    @field_validator("prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value or value == "/":
            return ""
        return "/" + value.strip("/")


class AuthConfig(BaseModel):
    jwt_secret: Optional[str] = Field(
        None, description="Shared secret used to verify identity tokens."
    )
    algorithms: list[str] = Field(default_factory=lambda: ["HS256"])
    audience: Optional[str] = None
    require_identity: bool = Field(
        False,
        description="Require a bearer token on listing and admin routes.",
    )
    admin_role: str = Field("admin")


class HealthConfig(BaseModel):
    timeout_s: float = Field(5.0, gt=0, description="Per-app liveness probe timeout.")
    accept: str = Field("text/html,application/json")


class ChannelConfig(BaseModel):
    path: str = Field("/ws")
    container_room: str = Field("container")
    anonymous_room: str = Field("anonymous")
    send_queue_size: int = Field(256, ge=1)


class LoaderConfig(BaseModel):
    max_attempts: int = Field(3, ge=1)
    base_delay_s: float = Field(1.0, ge=0)
    max_delay_s: float = Field(8.0, ge=0)
    jitter_s: float = Field(1.0, ge=0)
    script_timeout_s: float = Field(10.0, gt=0)
    element_timeout_s: float = Field(
        2.0, ge=0, description="How long to wait for a custom element after its script loads."
    )
    element_poll_interval_s: float = Field(0.05, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    log_dir: Optional[Path] = None


class AppConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    api: APIConfig = APIConfig()
    auth: AuthConfig = AuthConfig()
    health: HealthConfig = HealthConfig()
    channel: ChannelConfig = ChannelConfig()
    loader: LoaderConfig = LoaderConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Path | str) -> AppConfig:
    """Load YAML configuration from disk."""

    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    return AppConfig.model_validate(data)
