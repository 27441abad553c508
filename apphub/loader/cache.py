"""Explicit cache for load attempts.

Entries are evicted manually only: by ``invalidate`` for one key or by
``clear``. Failed attempts are evicted by the loader as soon as they settle,
so only successful loads stay memoized.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Iterator, Protocol

CacheKey = tuple[str, ...]


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


def attempt_state(future: asyncio.Future | None) -> LoadState:
    if future is None:
        return LoadState.IDLE
    if not future.done():
        return LoadState.LOADING
    if future.cancelled() or future.exception() is not None:
        return LoadState.FAILED
    return LoadState.LOADED


class ModuleCache(Protocol):
    def get(self, key: CacheKey) -> asyncio.Future | None: ...

    def put(self, key: CacheKey, attempt: asyncio.Future) -> None: ...

    def invalidate(self, key: CacheKey) -> bool: ...

    def clear(self) -> None: ...

    def keys(self) -> Iterator[CacheKey]: ...


class InMemoryModuleCache:
    def __init__(self) -> None:
        self._entries: dict[CacheKey, asyncio.Future] = {}

    def get(self, key: CacheKey) -> asyncio.Future | None:
        return self._entries.get(key)

    def put(self, key: CacheKey, attempt: asyncio.Future) -> None:
        self._entries[key] = attempt

    def invalidate(self, key: CacheKey) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[CacheKey]:
        return iter(list(self._entries))

    def state(self, key: CacheKey) -> LoadState:
        return attempt_state(self._entries.get(key))

    def __len__(self) -> int:
        return len(self._entries)
