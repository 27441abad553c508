"""Server entry points for the registry API."""

from __future__ import annotations

from fastapi import FastAPI

from ..channel.hub import StatusChannel
from ..config import AppConfig
from ..health.prober import HealthProber
from ..logging_utils import get_logger
from ..registry.store import RegistryStore
from ..storage.database import DatabaseManager
from .app import create_app as _create_app
from .container import build_container


def create_app(
    config: AppConfig | None = None,
    db_manager: DatabaseManager | None = None,
    *,
    store: RegistryStore | None = None,
    prober: HealthProber | None = None,
    channel: StatusChannel | None = None,
) -> FastAPI:
    config = config or AppConfig()
    container = build_container(
        config,
        db_manager,
        store=store,
        prober=prober,
        channel=channel,
    )
    return _create_app(container)


def run_server(config: AppConfig) -> None:
    import uvicorn

    log = get_logger("api")
    app = create_app(config)
    log.info("Starting registry API on {}:{}", config.api.host, config.api.port)
    uvicorn.run(app, host=config.api.host, port=config.api.port, log_config=None)
