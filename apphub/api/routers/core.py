"""Top-level router assembly."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..container import AppContainer
from .apps import build_apps_router
from .channel import build_channel_router


def build_router(container: AppContainer) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> dict[str, object]:
        return {
            "status": "ok",
            "connections": container.channel.connection_count,
        }

    @router.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    router.include_router(
        build_apps_router(container),
        prefix=container.config.api.prefix,
        tags=["Applications"],
    )
    router.include_router(build_channel_router(container))
    return router
