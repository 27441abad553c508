"""App lifespan wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..logging_utils import get_logger
from .container import AppContainer


def build_lifespan(container: AppContainer):
    log = get_logger("api")

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        log.info(
            "Registry API ready (prefix: '{}', channel: {})",
            container.config.api.prefix,
            container.config.channel.path,
        )
        yield
        if container.db_owned and container.db is not None:
            try:
                container.db.engine.dispose()
            except Exception as exc:
                log.warning("Database dispose failed: {}", exc)

    return lifespan
