"""Status channel: rooms, broadcasts and domain events."""

from .auth import Identity, IdentityError, IdentityVerifier
from .events import APP_REGISTERED, APP_STATUS_CHANGED, AppRegistered, AppStatusChanged
from .hub import ChannelConnection, StatusChannel
from .subscriptions import (
    InMemoryLivenessStore,
    InMemorySubscriptionStore,
    LivenessRecord,
    LivenessStore,
    SubscriptionStore,
)

__all__ = [
    "APP_REGISTERED",
    "APP_STATUS_CHANGED",
    "AppRegistered",
    "AppStatusChanged",
    "ChannelConnection",
    "Identity",
    "IdentityError",
    "IdentityVerifier",
    "InMemoryLivenessStore",
    "InMemorySubscriptionStore",
    "LivenessRecord",
    "LivenessStore",
    "StatusChannel",
    "SubscriptionStore",
]
