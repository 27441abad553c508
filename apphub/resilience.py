"""Retry primitives with exponential backoff."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import httpx

from .config import LoaderConfig


T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 8.0
    jitter_s: float = 1.0

    @classmethod
    def from_config(cls, config: LoaderConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay_s=config.base_delay_s,
            max_delay_s=config.max_delay_s,
            jitter_s=config.jitter_s,
        )


def compute_delay(
    policy: RetryPolicy,
    attempt: int,
    *,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay before the attempt following ``attempt`` (1-based)."""

    base = policy.base_delay_s * (2 ** max(0, attempt - 1))
    return min(policy.max_delay_s, base + rand() * policy.jitter_s)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    is_retryable: Callable[[Exception], bool],
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    rand: Callable[[], float] = random.random,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    last_exc: Exception | None = None
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as exc:
            last_exc = exc
            if attempt >= attempts or not is_retryable(exc):
                raise
            delay = compute_delay(policy, attempt, rand=rand)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            await sleep(delay)
    if last_exc:
        raise last_exc
    raise RuntimeError("retry_async failed without exception")


def is_retryable_exception(exc: Exception) -> bool:
    return isinstance(
        exc,
        (
            httpx.TransportError,
            TimeoutError,
            ConnectionError,
        ),
    )
