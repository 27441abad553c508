"""Custom element registry used by the web component strategy."""

from __future__ import annotations

import asyncio
import math
from typing import Any, Awaitable, Callable

from ..registry.models import WebComponentStrategy


class CustomElementRegistry:
    def __init__(self) -> None:
        self._definitions: dict[str, Any] = {}

    def define(self, tag_name: str, constructor: Any) -> None:
        WebComponentStrategy(tag_name=tag_name)
        if tag_name in self._definitions:
            raise ValueError(f"'{tag_name}' has already been defined")
        self._definitions[tag_name] = constructor

    def get(self, tag_name: str) -> Any | None:
        return self._definitions.get(tag_name)

    def is_defined(self, tag_name: str) -> bool:
        return tag_name in self._definitions

    async def when_defined(
        self,
        tag_name: str,
        *,
        timeout_s: float,
        interval_s: float,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> bool:
        """Poll until ``tag_name`` is defined; False once the budget is spent."""

        polls = max(1, math.ceil(timeout_s / interval_s)) if interval_s > 0 else 1
        for _ in range(polls):
            if self.is_defined(tag_name):
                return True
            await sleep(interval_s)
        return self.is_defined(tag_name)
