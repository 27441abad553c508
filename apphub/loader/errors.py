"""Client loader error taxonomy."""

from __future__ import annotations

from ..resilience import is_retryable_exception


class LoadError(RuntimeError):
    """Base error for resolving an app into a renderable unit."""

    retryable = False


class RetryableLoadError(LoadError):
    """Network-level failure; the shared retry policy applies."""

    retryable = True


class ScriptLoadError(RetryableLoadError):
    """Remote entry or element script could not be fetched."""


class HandshakeError(RetryableLoadError):
    """Transport failure while talking to a remote container."""


class FatalLoadError(LoadError):
    """Structural mismatch; retrying cannot fix it."""


class FederationError(FatalLoadError):
    """Missing container, module factory or default export."""


class UnregisteredElementError(FatalLoadError):
    """Custom element still undefined after its script loaded."""


class UnsupportedStrategyError(FatalLoadError):
    """Integration strategy the loader does not know."""


class AppUnavailableError(FatalLoadError):
    """App is unknown to the registry or inactive."""


def is_retryable_load_error(exc: Exception) -> bool:
    if isinstance(exc, LoadError):
        return exc.retryable
    return is_retryable_exception(exc)
