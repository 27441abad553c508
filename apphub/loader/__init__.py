"""Client loader: resolve app descriptors into renderable units."""

from .boundary import BoundaryStatus, Fallback, FaultBoundary
from .cache import InMemoryModuleCache, LoadState, ModuleCache
from .client import AppSource, ClientLoader, cache_key
from .elements import CustomElementRegistry
from .errors import (
    AppUnavailableError,
    FatalLoadError,
    FederationError,
    HandshakeError,
    LoadError,
    RetryableLoadError,
    ScriptLoadError,
    UnregisteredElementError,
    UnsupportedStrategyError,
)
from .federation import ContainerRegistry, RemoteContainer, SharedScope
from .scripts import HttpScriptHost, ScriptHost, script_id_for
from .units import IframeEmbed, RemoteModuleUnit, RenderableUnit, WebComponentUnit

__all__ = [
    "AppSource",
    "AppUnavailableError",
    "BoundaryStatus",
    "ClientLoader",
    "ContainerRegistry",
    "CustomElementRegistry",
    "Fallback",
    "FatalLoadError",
    "FaultBoundary",
    "FederationError",
    "HandshakeError",
    "HttpScriptHost",
    "IframeEmbed",
    "InMemoryModuleCache",
    "LoadError",
    "LoadState",
    "ModuleCache",
    "RemoteContainer",
    "RemoteModuleUnit",
    "RenderableUnit",
    "RetryableLoadError",
    "ScriptHost",
    "ScriptLoadError",
    "SharedScope",
    "UnregisteredElementError",
    "UnsupportedStrategyError",
    "WebComponentUnit",
    "cache_key",
    "script_id_for",
]
