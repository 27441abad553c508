"""Container registry and shared scope for remote modules.

A remote module container exposes ``init(share_scope)`` and ``get(module)``;
``get`` returns a factory whose result carries a ``default`` export. Containers
are registered explicitly or discovered from the ``apphub.containers`` entry
point group, keyed by their federation scope name.
"""

from __future__ import annotations

import importlib.metadata as metadata
import inspect
from typing import Any, Awaitable, Callable, Iterable, Protocol, TypeVar, Union

from ..logging_utils import get_logger

T = TypeVar("T")

ENTRY_POINT_GROUP = "apphub.containers"

ModuleFactory = Callable[[], Any]


class RemoteContainer(Protocol):
    def init(self, share_scope: "SharedScope") -> Union[Awaitable[None], None]: ...

    def get(self, module: str) -> Union[Awaitable[ModuleFactory | None], ModuleFactory, None]: ...


async def maybe_await(value: Union[Awaitable[T], T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


class SharedScope:
    """Dependencies the host shares with every container it initializes."""

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self.initialized = False
        self._packages: dict[str, dict[str, Any]] = {}

    def provide(self, package: str, version: str, provider: Any) -> None:
        self._packages.setdefault(package, {})[version] = provider

    def versions(self, package: str) -> dict[str, Any]:
        return dict(self._packages.get(package, {}))

    def __contains__(self, package: str) -> bool:
        return package in self._packages


class ContainerRegistry:
    def __init__(
        self,
        *,
        entry_points: Iterable[metadata.EntryPoint] | None = None,
        discover: bool = True,
    ) -> None:
        self._containers: dict[str, RemoteContainer] = {}
        self._entry_points = entry_points
        self._discover = discover
        self._log = get_logger("loader.federation")

    def register(self, scope: str, container: RemoteContainer) -> None:
        self._containers[scope] = container

    def unregister(self, scope: str) -> None:
        self._containers.pop(scope, None)

    def get(self, scope: str) -> RemoteContainer | None:
        container = self._containers.get(scope)
        if container is None and self._discover:
            container = self._load_entry_point(scope)
            if container is not None:
                self._containers[scope] = container
        return container

    def __contains__(self, scope: str) -> bool:
        return self.get(scope) is not None

    def _load_entry_point(self, scope: str) -> RemoteContainer | None:
        entry_points = self._entry_points
        if entry_points is None:
            entry_points = metadata.entry_points(group=ENTRY_POINT_GROUP)
        for entry in entry_points:
            if entry.name != scope:
                continue
            try:
                target = entry.load()
            except Exception as exc:
                self._log.warning("Container entry point {} failed to load: {}", entry.name, exc)
                return None
            if not (hasattr(target, "init") and hasattr(target, "get")) and callable(target):
                target = target()
            return target
        return None
