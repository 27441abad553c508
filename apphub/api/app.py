"""FastAPI assembly using the wired container."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .container import AppContainer
from .lifespan import build_lifespan
from .routers.core import build_router


def create_app(container: AppContainer) -> FastAPI:
    config = container.config
    app = FastAPI(
        title="AppHub Registry",
        description="Federated app registry, health monitoring and status channel",
        lifespan=build_lifespan(container),
    )
    app.state.container = container
    app.state.channel = container.channel
    app.state.registry = container.registry
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(build_router(container))
    return app
