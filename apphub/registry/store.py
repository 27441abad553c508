"""Registry store contract and its SQLAlchemy implementation."""

from __future__ import annotations

import datetime as dt
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..logging_utils import get_logger
from ..storage.database import DatabaseManager
from ..storage.models import AppRecord
from .errors import DuplicateAppError
from .models import AppDescriptor, parse_strategy


class RegistryStore(Protocol):
    """What the registry core needs from the durable app table."""

    def list_apps(self, *, active_only: bool = True) -> list[AppDescriptor]: ...

    def get_app(self, app_id: str) -> AppDescriptor | None: ...

    def get_by_name(self, name: str) -> AppDescriptor | None: ...

    def insert_app(self, app: AppDescriptor) -> AppDescriptor: ...

    def set_active(self, app_id: str, is_active: bool) -> AppDescriptor | None: ...

    def touch_heartbeat(self, app_id: str, at: dt.datetime) -> None: ...

    def delete_app(self, app_id: str) -> bool: ...


class SqlAlchemyRegistryStore:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db
        self._log = get_logger("registry.store")

    def list_apps(self, *, active_only: bool = True) -> list[AppDescriptor]:
        stmt = select(AppRecord).order_by(AppRecord.name)
        if active_only:
            stmt = stmt.where(AppRecord.is_active.is_(True))
        with self._db.session() as session:
            return [_to_descriptor(record) for record in session.scalars(stmt)]

    def get_app(self, app_id: str) -> AppDescriptor | None:
        with self._db.session() as session:
            record = session.get(AppRecord, app_id)
            return _to_descriptor(record) if record else None

    def get_by_name(self, name: str) -> AppDescriptor | None:
        with self._db.session() as session:
            record = session.scalars(select(AppRecord).where(AppRecord.name == name)).first()
            return _to_descriptor(record) if record else None

    def insert_app(self, app: AppDescriptor) -> AppDescriptor:
        strategy = app.integration_strategy
        record = AppRecord(
            id=app.id,
            name=app.name,
            url=app.base_url,
            icon_url=app.icon_url,
            is_active=app.is_active,
            integration_type=strategy.type,
            integration=strategy.model_dump(by_alias=True, exclude={"type"}),
            description=app.description,
            extra_metadata=dict(app.metadata),
        )
        try:
            with self._db.session() as session:
                session.add(record)
                session.flush()
                stored = _to_descriptor(record)
        except IntegrityError as exc:
            raise DuplicateAppError(
                "An app with this name already exists", detail={"name": app.name}
            ) from exc
        self._log.info("Stored app {} ({})", stored.name, stored.id)
        return stored

    def set_active(self, app_id: str, is_active: bool) -> AppDescriptor | None:
        with self._db.session() as session:
            record = session.get(AppRecord, app_id)
            if record is None:
                return None
            record.is_active = is_active
            session.flush()
            return _to_descriptor(record)

    def touch_heartbeat(self, app_id: str, at: dt.datetime) -> None:
        with self._db.session() as session:
            record = session.get(AppRecord, app_id)
            if record is not None:
                record.last_heartbeat_at = at

    def delete_app(self, app_id: str) -> bool:
        with self._db.session() as session:
            record = session.get(AppRecord, app_id)
            if record is None:
                return False
            session.delete(record)
            return True


def _to_descriptor(record: AppRecord) -> AppDescriptor:
    raw = dict(record.integration or {})
    raw["type"] = record.integration_type
    return AppDescriptor(
        id=record.id,
        name=record.name,
        base_url=record.url,
        icon_url=record.icon_url,
        is_active=bool(record.is_active),
        integration_strategy=parse_strategy(raw),
        description=record.description,
        metadata=dict(record.extra_metadata or {}),
        last_heartbeat_at=_as_utc(record.last_heartbeat_at),
    )


def _as_utc(value: dt.datetime | None) -> dt.datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=dt.timezone.utc)
