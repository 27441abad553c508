"""Registry error types."""

from __future__ import annotations

from typing import Any


class RegistryError(RuntimeError):
    """Base error for registry operations."""

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class AppValidationError(RegistryError):
    """Registration payload rejected before persistence."""


class DuplicateAppError(RegistryError):
    """An app with the same name already exists."""


class AppNotFoundError(RegistryError):
    """Unknown or inactive app id."""
