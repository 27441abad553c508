"""Concurrent liveness probing of registered apps."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable

import httpx

from ..config import HealthConfig
from ..logging_utils import get_logger
from ..observability.metrics import probe_latency_ms, probe_results_total
from ..registry.models import AppDescriptor, HealthCheckResult
from ..time_utils import elapsed_ms, monotonic_now, utc_now

_LOG = get_logger("health")


def classify_status(status_code: int) -> bool:
    """Any response below 500 means the app process is up and serving."""

    return status_code < 500


class HealthProber:
    def __init__(
        self,
        config: HealthConfig | None = None,
        *,
        http_client_factory: Callable[..., httpx.AsyncClient] | None = None,
    ) -> None:
        self._config = config or HealthConfig()
        self._client_factory = http_client_factory

    @property
    def timeout_s(self) -> float:
        return float(self._config.timeout_s)

    def _client(self, timeout_s: float) -> httpx.AsyncClient:
        if self._client_factory:
            return self._client_factory(timeout_s=timeout_s)
        return httpx.AsyncClient(timeout=timeout_s, follow_redirects=False)

    async def probe_all(self, apps: Iterable[AppDescriptor]) -> list[HealthCheckResult]:
        active = [app for app in apps if app.is_active]
        if not active:
            return []
        return list(await asyncio.gather(*(self.probe(app) for app in active)))

    async def probe(self, app: AppDescriptor) -> HealthCheckResult:
        start = monotonic_now()
        try:
            healthy = await asyncio.wait_for(self._check(app), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            _LOG.warning(
                "Health check timed out for {} ({}) after {}s", app.name, app.base_url, self.timeout_s
            )
            healthy = False
        except Exception as exc:
            _LOG.warning("Health check failed for {} ({}): {}", app.name, app.base_url, exc)
            healthy = False
        probe_latency_ms.observe(elapsed_ms(start))
        probe_results_total.labels("healthy" if healthy else "unhealthy").inc()
        return HealthCheckResult(app_id=app.id, healthy=healthy, checked_at=utc_now())

    async def _check(self, app: AppDescriptor) -> bool:
        async with self._client(self.timeout_s) as client:
            response = await client.get(app.base_url, headers={"Accept": self._config.accept})
        if not classify_status(response.status_code):
            _LOG.debug("Health check for {} returned {}", app.name, response.status_code)
            return False
        return True
