"""Federated app registry."""

from .errors import AppNotFoundError, AppValidationError, DuplicateAppError, RegistryError
from .models import (
    AppDescriptor,
    AppRequest,
    HealthCheckResult,
    IframeStrategy,
    RemoteModuleStrategy,
    WebComponentStrategy,
)

__all__ = [
    "AppDescriptor",
    "AppNotFoundError",
    "AppRequest",
    "AppValidationError",
    "DuplicateAppError",
    "HealthCheckResult",
    "IframeStrategy",
    "RegistryError",
    "RemoteModuleStrategy",
    "WebComponentStrategy",
]
