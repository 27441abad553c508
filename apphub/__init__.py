"""AppHub: registry, health monitoring and dynamic loading for federated apps."""

from __future__ import annotations

from .config import AppConfig, load_config
from .logging_utils import configure_logging

__all__ = ["AppConfig", "configure_logging", "load_config"]
