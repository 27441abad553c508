"""Resolve app descriptors into renderable units.

Every in-flight or completed load is memoized by a strategy-specific key so
concurrent callers share one attempt. Failed attempts are evicted as soon as
they settle; successful ones stay until ``invalidate`` or ``clear_cache``.
"""

from __future__ import annotations

import asyncio
import inspect
import random
from typing import Any, Awaitable, Callable, Iterable, Protocol

from ..config import LoaderConfig
from ..logging_utils import get_logger
from ..observability.metrics import loader_attempts_total
from ..registry.models import (
    AppDescriptor,
    IframeStrategy,
    RemoteModuleStrategy,
    WebComponentStrategy,
)
from ..resilience import RetryPolicy, is_retryable_exception, retry_async
from .cache import CacheKey, InMemoryModuleCache, ModuleCache
from .elements import CustomElementRegistry
from .errors import (
    AppUnavailableError,
    FederationError,
    HandshakeError,
    LoadError,
    UnregisteredElementError,
    UnsupportedStrategyError,
    is_retryable_load_error,
)
from .federation import ContainerRegistry, SharedScope, maybe_await
from .scripts import ScriptHost, script_id_for
from .units import IframeEmbed, RemoteModuleUnit, RenderableUnit, WebComponentUnit


class AppSource(Protocol):
    async def get_app(self, app_id: str) -> AppDescriptor | None: ...


class ClientLoader:
    def __init__(
        self,
        *,
        script_host: ScriptHost,
        containers: ContainerRegistry | None = None,
        elements: CustomElementRegistry | None = None,
        cache: ModuleCache | None = None,
        config: LoaderConfig | None = None,
        shared_scope: SharedScope | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self._config = config or LoaderConfig()
        self._policy = RetryPolicy.from_config(self._config)
        self._scripts = script_host
        self._containers = containers or ContainerRegistry()
        self._elements = elements or CustomElementRegistry()
        self._cache = cache or InMemoryModuleCache()
        self._shared_scope = shared_scope or SharedScope()
        self._sleep = sleep
        self._rand = rand
        self._log = get_logger("loader")

    @property
    def cache(self) -> ModuleCache:
        return self._cache

    @property
    def elements(self) -> CustomElementRegistry:
        return self._elements

    @property
    def containers(self) -> ContainerRegistry:
        return self._containers

    async def resolve(self, app: AppDescriptor) -> RenderableUnit:
        if not app.is_active:
            raise AppUnavailableError(f"App '{app.name}' is not active")
        key = cache_key(app)
        attempt = self._cache.get(key)
        if attempt is None:
            attempt = asyncio.ensure_future(self._load(app))
            self._cache.put(key, attempt)
            attempt.add_done_callback(lambda done: self._settle(key, done))
        return await asyncio.shield(attempt)

    async def load_app(self, app_id: str, source: AppSource) -> RenderableUnit:
        """Look ``app_id`` up in the registry and resolve it."""

        app = await source.get_app(app_id)
        if app is None:
            raise AppUnavailableError(f"App {app_id} not found")
        if not app.is_active:
            raise AppUnavailableError(f"App '{app.name}' is not active")
        return await self.resolve(app)

    async def preload(self, apps: Iterable[AppDescriptor]) -> dict[str, Exception | None]:
        """Warm the cache; failures are reported per app, never raised."""

        targets = [app for app in apps if app.is_active]
        outcomes = await asyncio.gather(
            *(self.resolve(app) for app in targets), return_exceptions=True
        )
        report: dict[str, Exception | None] = {}
        for app, outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                self._log.warning("Preload failed for {}: {}", app.name, outcome)
                report[app.id] = outcome
            else:
                report[app.id] = None
        return report

    def invalidate(self, app: AppDescriptor) -> bool:
        return self._cache.invalidate(cache_key(app))

    def clear_cache(self) -> None:
        self._cache.clear()
        self._log.info("Module cache cleared")

    def _settle(self, key: CacheKey, attempt: asyncio.Future) -> None:
        failed = attempt.cancelled() or attempt.exception() is not None
        if failed and self._cache.get(key) is attempt:
            self._cache.invalidate(key)

    async def _load(self, app: AppDescriptor) -> RenderableUnit:
        strategy = app.integration_strategy
        if isinstance(strategy, RemoteModuleStrategy):
            return await self._with_retry(
                app, strategy.type, lambda: self._load_remote_module(app, strategy)
            )
        if isinstance(strategy, IframeStrategy):
            loader_attempts_total.labels(strategy.type, "success").inc()
            return IframeEmbed(app_id=app.id, title=app.name, src=app.base_url)
        if isinstance(strategy, WebComponentStrategy):
            return await self._load_web_component(app, strategy)
        raise UnsupportedStrategyError(f"Unsupported integration type: {app.integration_type}")

    async def _with_retry(
        self, app: AppDescriptor, strategy: str, fn: Callable[[], Awaitable[Any]]
    ) -> Any:
        async def attempt() -> Any:
            try:
                result = await fn()
            except Exception as exc:
                outcome = "retryable" if is_retryable_load_error(exc) else "fatal"
                loader_attempts_total.labels(strategy, outcome).inc()
                raise
            loader_attempts_total.labels(strategy, "success").inc()
            return result

        def on_retry(attempt_no: int, exc: Exception, delay: float) -> None:
            self._log.warning(
                "Load attempt {} for {} failed: {}; retrying in {:.2f}s",
                attempt_no,
                app.name,
                exc,
                delay,
            )

        try:
            return await retry_async(
                attempt,
                policy=self._policy,
                is_retryable=is_retryable_load_error,
                sleep=self._sleep,
                rand=self._rand,
                on_retry=on_retry,
            )
        except Exception as exc:
            self._log.error("Failed to load {}: {}", app.name, exc)
            raise

    async def _ensure_shared_scope(self) -> SharedScope:
        self._shared_scope.initialized = True
        return self._shared_scope

    async def _load_remote_module(
        self, app: AppDescriptor, strategy: RemoteModuleStrategy
    ) -> RemoteModuleUnit:
        entry_url = strategy.entry_url
        await self._scripts.inject(entry_url, script_id_for(entry_url))
        share_scope = await self._ensure_shared_scope()
        container = self._containers.get(strategy.scope)
        if container is None:
            raise FederationError(f"Container '{strategy.scope}' not found after loading {entry_url}")
        try:
            await maybe_await(container.init(share_scope))
            factory = await maybe_await(container.get(strategy.module))
            if factory is None:
                raise FederationError(
                    f"Module '{strategy.module}' not found in container '{strategy.scope}'"
                )
            module = factory()
            if inspect.isawaitable(module):
                module = await module
        except LoadError:
            raise
        except Exception as exc:
            if is_retryable_exception(exc):
                raise HandshakeError(
                    f"Handshake with container '{strategy.scope}' failed: {exc}"
                ) from exc
            raise FederationError(
                f"Container '{strategy.scope}' rejected module '{strategy.module}': {exc}"
            ) from exc
        component = _default_export(module)
        if component is None:
            raise FederationError(
                f"Module '{strategy.module}' in '{strategy.scope}' has no default export"
            )
        self._log.info("Loaded remote module {} from {}", strategy.module, strategy.scope)
        return RemoteModuleUnit(app_id=app.id, app_name=app.name, component=component, module=module)

    async def _load_web_component(
        self, app: AppDescriptor, strategy: WebComponentStrategy
    ) -> WebComponentUnit:
        tag_name = strategy.tag_name
        if not self._elements.is_defined(tag_name):
            if strategy.script_url:
                script_url = strategy.script_url
                await self._with_retry(
                    app,
                    strategy.type,
                    lambda: self._scripts.inject(script_url, script_id_for(script_url)),
                )
            defined = await self._elements.when_defined(
                tag_name,
                timeout_s=self._config.element_timeout_s,
                interval_s=self._config.element_poll_interval_s,
                sleep=self._sleep,
            )
            if not defined:
                loader_attempts_total.labels(strategy.type, "fatal").inc()
                raise UnregisteredElementError(
                    f'Web component "{tag_name}" not found after loading script'
                )
        return WebComponentUnit(
            app_id=app.id,
            app_name=app.name,
            tag_name=tag_name,
            element=self._elements.get(tag_name),
        )


def cache_key(app: AppDescriptor) -> CacheKey:
    strategy = app.integration_strategy
    if isinstance(strategy, RemoteModuleStrategy):
        return (strategy.type, strategy.remote_url, strategy.scope, strategy.module)
    if isinstance(strategy, WebComponentStrategy):
        return (strategy.type, strategy.script_url or "", strategy.tag_name)
    return (strategy.type, app.base_url)


def _default_export(module: Any) -> Any:
    if isinstance(module, dict):
        return module.get("default")
    return getattr(module, "default", None)
