from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from apphub.config import DatabaseConfig
from apphub.registry.errors import DuplicateAppError
from apphub.registry.models import AppDescriptor, IframeStrategy, WebComponentStrategy
from apphub.registry.store import SqlAlchemyRegistryStore
from apphub.storage.database import DatabaseManager


def _store(tmp_path: Path) -> SqlAlchemyRegistryStore:
    db = DatabaseManager(DatabaseConfig(url=f"sqlite:///{tmp_path / 'db.sqlite'}"))
    return SqlAlchemyRegistryStore(db)


def _app(app_id: str, name: str, strategy=None) -> AppDescriptor:
    return AppDescriptor(
        id=app_id,
        name=name,
        base_url=f"http://{name.lower()}.test",
        integration_strategy=strategy or IframeStrategy(),
        metadata={"team": "core"},
    )


def test_insert_and_read_back(tmp_path: Path) -> None:
    store = _store(tmp_path)
    strategy = WebComponentStrategy(tag_name="docs-viewer", script_url="http://docs.test/v.js")
    store.insert_app(_app("a1", "Docs", strategy))

    loaded = store.get_app("a1")
    assert loaded is not None
    assert loaded.integration_strategy == strategy
    assert loaded.metadata == {"team": "core"}
    assert store.get_by_name("Docs").id == "a1"
    assert store.get_app("missing") is None


def test_duplicate_name_is_distinguishable(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.insert_app(_app("a1", "Docs"))
    with pytest.raises(DuplicateAppError):
        store.insert_app(_app("a2", "Docs"))
    assert [app.id for app in store.list_apps(active_only=False)] == ["a1"]


def test_active_filter_heartbeat_and_delete(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.insert_app(_app("a1", "Alpha"))
    store.insert_app(_app("b1", "Beta"))

    assert store.set_active("b1", False).is_active is False
    assert [app.name for app in store.list_apps()] == ["Alpha"]
    assert [app.name for app in store.list_apps(active_only=False)] == ["Alpha", "Beta"]
    assert store.set_active("missing", True) is None

    at = dt.datetime(2024, 5, 1, 12, 0, tzinfo=dt.timezone.utc)
    store.touch_heartbeat("a1", at)
    assert store.get_app("a1").last_heartbeat_at == at

    assert store.delete_app("a1") is True
    assert store.delete_app("a1") is False
