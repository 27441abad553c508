"""HTTP client for the registry API, used by hosts and federated apps."""

from __future__ import annotations

from typing import Any, Callable

import httpx

from ..logging_utils import get_logger
from ..registry.models import (
    AppDescriptor,
    AppRequest,
    HealthReportEntry,
    HeartbeatAck,
    HeartbeatRequest,
)


class HubClient:
    def __init__(
        self,
        base_url: str,
        *,
        prefix: str = "/api",
        token: str | None = None,
        timeout_s: float = 10.0,
        http_client_factory: Callable[..., httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._prefix = prefix.rstrip("/")
        self._token = token
        self._timeout_s = timeout_s
        self._client_factory = http_client_factory
        self._log = get_logger("sdk.client")

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None
        if self._client_factory:
            return self._client_factory(
                base_url=self._base_url, timeout_s=self._timeout_s, headers=headers
            )
        return httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout_s, headers=headers)

    def _path(self, path: str) -> str:
        return f"{self._prefix}{path}"

    async def list_apps(self, *, healthy_only: bool = False) -> list[AppDescriptor]:
        params = {"healthyOnly": "true"} if healthy_only else None
        async with self._client() as client:
            response = await client.get(self._path("/apps"), params=params)
        response.raise_for_status()
        return [AppDescriptor.model_validate(item) for item in response.json()]

    async def health(self) -> list[HealthReportEntry]:
        async with self._client() as client:
            response = await client.get(self._path("/apps/health"))
        response.raise_for_status()
        return [HealthReportEntry.model_validate(item) for item in response.json()]

    async def get_app(self, app_id: str) -> AppDescriptor | None:
        async with self._client() as client:
            response = await client.get(self._path(f"/apps/{app_id}"))
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return AppDescriptor.model_validate(response.json())

    async def register(self, request: AppRequest | dict[str, Any]) -> AppDescriptor:
        """Self-register with the hub; returns the existing app on re-registration."""

        if isinstance(request, dict):
            request = AppRequest.model_validate(request)
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        async with self._client() as client:
            response = await client.post(self._path("/apps/register"), json=body)
        response.raise_for_status()
        app = AppDescriptor.model_validate(response.json())
        self._log.info("Registered with hub as {} ({})", app.name, app.id)
        return app

    async def heartbeat(
        self,
        app_id: str,
        status: str = "online",
        metadata: dict[str, Any] | None = None,
    ) -> HeartbeatAck:
        body = HeartbeatRequest(status=status, metadata=metadata or {})
        async with self._client() as client:
            response = await client.post(
                self._path(f"/apps/{app_id}/heartbeat"),
                json=body.model_dump(mode="json", by_alias=True),
            )
        response.raise_for_status()
        return HeartbeatAck.model_validate(response.json())
