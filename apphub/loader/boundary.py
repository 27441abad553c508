"""Fault isolation around a single mounted app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from ..logging_utils import get_logger
from ..observability.metrics import boundary_faults_total
from ..registry.models import AppDescriptor
from .units import RenderableUnit

_LOG = get_logger("loader.boundary")


class BoundaryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class Fallback:
    app_name: str
    message: str
    phase: str
    retry: Callable[[], Awaitable[Any]] = field(repr=False, compare=False)

    @property
    def title(self) -> str:
        return f"Failed to load {self.app_name}"


class FaultBoundary:
    """Contain load and render faults of one app.

    A fault switches the boundary to a ``Fallback``; siblings keep working and
    the fault never propagates to the caller. ``retry`` drops the loader's
    cached modules and mounts again.
    """

    def __init__(
        self,
        loader: Any,
        app: AppDescriptor,
        *,
        on_error: Callable[[Exception, str], None] | None = None,
    ) -> None:
        self._loader = loader
        self._app = app
        self._on_error = on_error
        self._status = BoundaryStatus.IDLE
        self._unit: RenderableUnit | None = None
        self._fallback: Fallback | None = None
        self.error: Exception | None = None

    @property
    def status(self) -> BoundaryStatus:
        return self._status

    @property
    def unit(self) -> RenderableUnit | None:
        return self._unit

    @property
    def fallback(self) -> Fallback | None:
        return self._fallback

    async def mount(self) -> RenderableUnit | Fallback:
        self._status = BoundaryStatus.LOADING
        self._unit = None
        self._fallback = None
        self.error = None
        try:
            self._unit = await self._loader.resolve(self._app)
        except Exception as exc:
            return self._fail(exc, "load")
        self._status = BoundaryStatus.READY
        return self._unit

    def render(self, **props: Any) -> Any:
        if self._status is BoundaryStatus.FAILED:
            return self._fallback
        if self._unit is None:
            raise RuntimeError(f"Boundary for {self._app.name} is not mounted")
        try:
            return self._unit.render(**props)
        except Exception as exc:
            return self._fail(exc, "render")

    async def retry(self) -> RenderableUnit | Fallback:
        self._loader.clear_cache()
        return await self.mount()

    def _fail(self, exc: Exception, phase: str) -> Fallback:
        _LOG.error("App {} failed during {}: {}", self._app.name, phase, exc)
        boundary_faults_total.labels(phase).inc()
        self.error = exc
        self._status = BoundaryStatus.FAILED
        self._unit = None
        self._fallback = Fallback(
            app_name=self._app.name,
            message=str(exc) or "An unexpected error occurred",
            phase=phase,
            retry=self.retry,
        )
        if self._on_error is not None:
            try:
                self._on_error(exc, phase)
            except Exception as hook_exc:
                _LOG.warning("Boundary error hook failed for {}: {}", self._app.name, hook_exc)
        return self._fallback
