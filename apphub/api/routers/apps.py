"""Registry routes: listing, health, registration and heartbeats."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ...observability.metrics import registry_requests_total
from ...registry.errors import (
    AppNotFoundError,
    AppValidationError,
    DuplicateAppError,
    RegistryError,
)
from ...registry.models import ActivateRequest, AppRequest, HeartbeatRequest
from ..container import AppContainer
from ..deps import require_admin, require_identity


def build_apps_router(container: AppContainer) -> APIRouter:
    router = APIRouter()
    registry = container.registry

    @router.get("/apps", dependencies=[Depends(require_identity)])
    async def list_apps(healthy_only: bool = Query(False, alias="healthyOnly")) -> list[dict]:
        apps = await registry.list_apps(healthy_only=healthy_only)
        registry_requests_total.labels("list", "200").inc()
        return apps

    @router.get("/apps/health", dependencies=[Depends(require_identity)])
    async def apps_health() -> list[dict]:
        report = await registry.health_report()
        registry_requests_total.labels("health", "200").inc()
        return [entry.model_dump(mode="json", by_alias=True) for entry in report]

    @router.get("/apps/{app_id}", dependencies=[Depends(require_identity)])
    async def get_app(app_id: str) -> dict:
        try:
            app = await registry.get_app(app_id)
        except RegistryError as exc:
            raise _http_error("get", exc) from exc
        return app.to_wire(include_health=False)

    @router.post("/apps", dependencies=[Depends(require_admin)])
    async def create_app(payload: AppRequest) -> JSONResponse:
        try:
            app = await registry.create_app(payload)
        except RegistryError as exc:
            raise _http_error("create", exc) from exc
        registry_requests_total.labels("create", "201").inc()
        return JSONResponse(status_code=201, content=app.to_wire(include_health=False))

    @router.post("/apps/register")
    async def register_app(payload: AppRequest) -> JSONResponse:
        try:
            app, created = await registry.register_app(payload)
        except RegistryError as exc:
            raise _http_error("register", exc) from exc
        status = 201 if created else 200
        registry_requests_total.labels("register", str(status)).inc()
        return JSONResponse(status_code=status, content=app.to_wire(include_health=False))

    @router.put("/apps/{app_id}/activate", dependencies=[Depends(require_admin)])
    async def activate_app(app_id: str, payload: ActivateRequest) -> dict:
        try:
            app = await registry.set_active(app_id, payload.is_active)
        except RegistryError as exc:
            raise _http_error("activate", exc) from exc
        registry_requests_total.labels("activate", "200").inc()
        return {"message": "App status updated successfully", "isActive": app.is_active}

    @router.delete("/apps/{app_id}", dependencies=[Depends(require_admin)])
    async def delete_app(app_id: str) -> dict:
        try:
            await registry.delete_app(app_id)
        except RegistryError as exc:
            raise _http_error("delete", exc) from exc
        registry_requests_total.labels("delete", "200").inc()
        return {"message": "App deleted successfully"}

    @router.post("/apps/{app_id}/heartbeat")
    async def heartbeat(app_id: str, payload: HeartbeatRequest | None = Body(None)) -> dict:
        try:
            ack = await registry.heartbeat(app_id, payload or HeartbeatRequest())
        except RegistryError as exc:
            raise _http_error("heartbeat", exc) from exc
        registry_requests_total.labels("heartbeat", "200").inc()
        return ack.model_dump(mode="json", by_alias=True)

    return router


def _http_error(route: str, exc: RegistryError) -> HTTPException:
    if isinstance(exc, AppValidationError):
        status = 400
    elif isinstance(exc, DuplicateAppError):
        status = 409
    elif isinstance(exc, AppNotFoundError):
        status = 404
    else:
        status = 500
    registry_requests_total.labels(route, str(status)).inc()
    return HTTPException(status_code=status, detail=str(exc))
