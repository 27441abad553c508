"""Registry operations behind the REST surface."""

from __future__ import annotations

import asyncio
import uuid

from ..channel.events import AppRegistered, AppStatusChanged
from ..channel.hub import StatusChannel
from ..channel.subscriptions import LivenessRecord
from ..health.prober import HealthProber
from ..logging_utils import get_logger
from ..observability.metrics import heartbeats_total
from ..time_utils import utc_now
from .errors import AppNotFoundError, DuplicateAppError
from .models import (
    IFRAME,
    REMOTE_MODULE,
    AppDescriptor,
    AppRequest,
    HealthReportEntry,
    HeartbeatAck,
    HeartbeatRequest,
)
from .store import RegistryStore

ADMIN_DEFAULT_STRATEGY = IFRAME
SELF_REGISTER_DEFAULT_STRATEGY = REMOTE_MODULE


class RegistryService:
    def __init__(
        self,
        store: RegistryStore,
        prober: HealthProber,
        channel: StatusChannel,
    ) -> None:
        self._store = store
        self._prober = prober
        self._channel = channel
        self._log = get_logger("registry")

    async def probe_active(self) -> list[AppDescriptor]:
        """Run one probe cycle and annotate every active app with its result."""

        apps = await asyncio.to_thread(self._store.list_apps, active_only=True)
        results = {result.app_id: result for result in await self._prober.probe_all(apps)}
        annotated: list[AppDescriptor] = []
        for app in apps:
            result = results.get(app.id)
            if result is None:
                continue
            self._record_probe(app, result.healthy)
            annotated.append(
                app.model_copy(
                    update={"is_healthy": result.healthy, "last_checked_at": result.checked_at}
                )
            )
        return annotated

    async def list_apps(self, *, healthy_only: bool = False) -> list[dict]:
        apps = await self.probe_active()
        if healthy_only:
            return [app.to_wire(include_health=False) for app in apps if app.is_healthy]
        return [app.to_wire() for app in apps]

    async def health_report(self) -> list[HealthReportEntry]:
        return [
            HealthReportEntry(
                id=app.id,
                name=app.name,
                url=app.base_url,
                is_healthy=bool(app.is_healthy),
                last_checked=app.last_checked_at or utc_now(),
            )
            for app in await self.probe_active()
        ]

    async def get_app(self, app_id: str) -> AppDescriptor:
        app = await asyncio.to_thread(self._store.get_app, app_id)
        if app is None:
            raise AppNotFoundError("App not found", detail={"id": app_id})
        return app

    async def create_app(
        self, request: AppRequest, *, default_strategy: str = ADMIN_DEFAULT_STRATEGY
    ) -> AppDescriptor:
        app = _descriptor_from_request(request, default_strategy)
        stored = await asyncio.to_thread(self._store.insert_app, app)
        self._log.info("App '{}' registered ({})", stored.name, stored.id)
        return stored

    async def register_app(self, request: AppRequest) -> tuple[AppDescriptor, bool]:
        """Create-or-get by name. Returns the descriptor and whether it was created.

        Only a newly created app is announced on the channel.
        """

        try:
            app = await self.create_app(request, default_strategy=SELF_REGISTER_DEFAULT_STRATEGY)
            created = True
        except DuplicateAppError:
            name, _ = request.validated_identity()
            existing = await asyncio.to_thread(self._store.get_by_name, name)
            if existing is None:
                raise
            app, created = existing, False
            self._log.info("App '{}' re-registered; returning {}", name, existing.id)
        if created:
            self._channel.publish_registered(AppRegistered(app=app.to_wire(), timestamp=utc_now()))
        return app, created

    async def set_active(self, app_id: str, is_active: bool) -> AppDescriptor:
        app = await asyncio.to_thread(self._store.set_active, app_id, is_active)
        if app is None:
            raise AppNotFoundError("App not found", detail={"id": app_id})
        if not is_active:
            self._channel.liveness.forget(app_id)
        self._log.info("App '{}' active={}", app.name, is_active)
        return app

    async def delete_app(self, app_id: str) -> None:
        deleted = await asyncio.to_thread(self._store.delete_app, app_id)
        if not deleted:
            raise AppNotFoundError("App not found", detail={"id": app_id})
        self._channel.liveness.forget(app_id)
        self._log.info("App {} deregistered", app_id)

    async def heartbeat(self, app_id: str, request: HeartbeatRequest) -> HeartbeatAck:
        app = await asyncio.to_thread(self._store.get_app, app_id)
        if app is None or not app.is_active:
            raise AppNotFoundError("App not found or inactive", detail={"id": app_id})
        now = utc_now()
        await asyncio.to_thread(self._store.touch_heartbeat, app_id, now)
        healthy = request.status == "online"
        self._channel.liveness.record(
            LivenessRecord(
                app_id=app_id, status=request.status, healthy=healthy, source="heartbeat", at=now
            )
        )
        self._channel.publish_status(
            AppStatusChanged(
                app_id=app_id,
                app_name=app.name,
                status=request.status,
                is_healthy=healthy,
                timestamp=now,
                metadata=request.metadata,
            )
        )
        heartbeats_total.labels(request.status).inc()
        self._log.info("Heartbeat received from {} ({}): {}", app.name, app_id, request.status)
        return HeartbeatAck(timestamp=now)

    def _record_probe(self, app: AppDescriptor, healthy: bool) -> None:
        now = utc_now()
        status = "online" if healthy else "offline"
        previous = self._channel.liveness.record(
            LivenessRecord(app_id=app.id, status=status, healthy=healthy, source="probe", at=now)
        )
        if previous is None or previous.healthy == healthy:
            return
        self._log.info("App '{}' changed to {} after probe", app.name, status)
        self._channel.publish_status(
            AppStatusChanged(
                app_id=app.id,
                app_name=app.name,
                status=status,
                is_healthy=healthy,
                timestamp=now,
                metadata={"source": "probe"},
            )
        )


def _descriptor_from_request(request: AppRequest, default_strategy: str) -> AppDescriptor:
    name, url = request.validated_identity()
    strategy = request.build_strategy(default_strategy)
    return AppDescriptor(
        id=str(uuid.uuid4()),
        name=name,
        base_url=url,
        icon_url=request.icon_url,
        is_active=True,
        integration_strategy=strategy,
        description=request.description,
        metadata=request.metadata or {},
    )
