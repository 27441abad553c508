"""API composition root for service wiring."""

from __future__ import annotations

from dataclasses import dataclass

from ..channel.auth import IdentityVerifier
from ..channel.hub import StatusChannel
from ..config import AppConfig
from ..health.prober import HealthProber
from ..logging_utils import get_logger
from ..registry.service import RegistryService
from ..registry.store import RegistryStore, SqlAlchemyRegistryStore
from ..storage.database import DatabaseManager


@dataclass(frozen=True)
class AppContainer:
    config: AppConfig
    db: DatabaseManager | None
    db_owned: bool
    store: RegistryStore
    prober: HealthProber
    channel: StatusChannel
    verifier: IdentityVerifier
    registry: RegistryService


def build_container(
    config: AppConfig,
    db_manager: DatabaseManager | None = None,
    *,
    store: RegistryStore | None = None,
    prober: HealthProber | None = None,
    channel: StatusChannel | None = None,
) -> AppContainer:
    log = get_logger("api")
    db = db_manager
    db_owned = False
    if store is None:
        db_owned = db is None
        db = db or DatabaseManager(config.database)
        store = SqlAlchemyRegistryStore(db)
    prober = prober or HealthProber(config.health)
    channel = channel or StatusChannel(config.channel)
    verifier = IdentityVerifier(config.auth)
    if config.auth.require_identity and not verifier.enabled:
        log.warning("auth.require_identity is set but auth.jwt_secret is empty; all callers will be rejected")
    registry = RegistryService(store, prober, channel)
    return AppContainer(
        config=config,
        db=db,
        db_owned=db_owned,
        store=store,
        prober=prober,
        channel=channel,
        verifier=verifier,
        registry=registry,
    )
