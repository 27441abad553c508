"""Remote script injection with per-id de-duplication."""

from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, Protocol, Union

import httpx

from ..logging_utils import get_logger
from .errors import FatalLoadError, ScriptLoadError

ScriptEvaluator = Callable[[str, str], Union[Awaitable[None], None]]


def script_id_for(url: str) -> str:
    return "remote-" + re.sub(r"[^a-zA-Z0-9]", "_", url)


class ScriptHost(Protocol):
    def is_loaded(self, script_id: str) -> bool: ...

    async def inject(self, url: str, script_id: str) -> None: ...


class HttpScriptHost:
    """Fetch scripts over HTTP and hand their source to an evaluator.

    The evaluator is where a host turns a fetched entry into registered
    containers or custom elements.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 10.0,
        evaluator: ScriptEvaluator | None = None,
        http_client_factory: Callable[..., httpx.AsyncClient] | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._evaluator = evaluator
        self._client_factory = http_client_factory
        self._loaded: set[str] = set()
        self._pending: dict[str, asyncio.Task] = {}
        self._log = get_logger("loader.scripts")

    def is_loaded(self, script_id: str) -> bool:
        return script_id in self._loaded

    def _client(self) -> httpx.AsyncClient:
        if self._client_factory:
            return self._client_factory(timeout_s=self._timeout_s)
        return httpx.AsyncClient(timeout=self._timeout_s)

    async def inject(self, url: str, script_id: str) -> None:
        if script_id in self._loaded:
            return
        pending = self._pending.get(script_id)
        if pending is None:
            pending = asyncio.ensure_future(self._load(url, script_id))
            self._pending[script_id] = pending
            pending.add_done_callback(lambda _: self._pending.pop(script_id, None))
        await asyncio.shield(pending)

    async def _load(self, url: str, script_id: str) -> None:
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            self._log.error("Failed to load remote script {}: {}", url, exc)
            raise ScriptLoadError(f"Failed to load remote script: {url}") from exc
        if response.status_code >= 400:
            self._log.error("Failed to load remote script {}: HTTP {}", url, response.status_code)
            raise ScriptLoadError(f"Failed to load remote script: {url} (HTTP {response.status_code})")
        if self._evaluator is not None:
            try:
                result = self._evaluator(url, response.text)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                raise FatalLoadError(f"Remote script {url} failed to evaluate: {exc}") from exc
        self._loaded.add(script_id)
        self._log.info("Loaded remote script: {}", url)
