"""Client SDK for hosts and federated apps talking to the registry."""

from .client import HubClient
from .heartbeat import DEFAULT_INTERVAL_S, HeartbeatClient

__all__ = ["DEFAULT_INTERVAL_S", "HeartbeatClient", "HubClient"]
