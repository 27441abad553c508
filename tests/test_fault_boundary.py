from __future__ import annotations

import asyncio

from apphub.loader import BoundaryStatus, Fallback, FaultBoundary, FederationError
from apphub.registry.models import AppDescriptor, IframeStrategy


def _app(name: str) -> AppDescriptor:
    return AppDescriptor(
        id=name.lower(), name=name, base_url=f"http://{name.lower()}.test", integration_strategy=IframeStrategy()
    )


class StaticUnit:
    def __init__(self, fail_render: bool = False) -> None:
        self.fail_render = fail_render

    def render(self, **props) -> str:
        if self.fail_render:
            raise KeyError("user")
        return f"rendered:{props.get('user', '')}"


class FakeLoader:
    def __init__(self, outcomes: dict[str, list]) -> None:
        self.outcomes = outcomes
        self.cleared = 0

    async def resolve(self, app: AppDescriptor):
        outcome = self.outcomes[app.id].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def clear_cache(self) -> None:
        self.cleared += 1


def test_load_fault_switches_to_fallback() -> None:
    loader = FakeLoader({"billing": [FederationError("Container 'billing' not found")]})
    boundary = FaultBoundary(loader, _app("Billing"))

    result = asyncio.run(boundary.mount())

    assert isinstance(result, Fallback)
    assert boundary.status is BoundaryStatus.FAILED
    assert result.title == "Failed to load Billing"
    assert result.message == "Container 'billing' not found"
    assert result.phase == "load"
    assert boundary.render(user="ana") is result


def test_sibling_boundaries_are_isolated() -> None:
    loader = FakeLoader({"billing": [RuntimeError("boom")], "docs": [StaticUnit()]})
    broken = FaultBoundary(loader, _app("Billing"))
    healthy = FaultBoundary(loader, _app("Docs"))

    async def _mount_all():
        return await asyncio.gather(broken.mount(), healthy.mount())

    asyncio.run(_mount_all())

    assert broken.status is BoundaryStatus.FAILED
    assert healthy.status is BoundaryStatus.READY
    assert healthy.render(user="ana") == "rendered:ana"


def test_render_fault_is_contained() -> None:
    loader = FakeLoader({"billing": [StaticUnit(fail_render=True)]})
    boundary = FaultBoundary(loader, _app("Billing"))
    asyncio.run(boundary.mount())

    result = boundary.render()

    assert isinstance(result, Fallback)
    assert result.phase == "render"
    assert isinstance(boundary.error, KeyError)
    assert boundary.unit is None


def test_retry_clears_loader_cache_and_remounts() -> None:
    loader = FakeLoader({"billing": [ConnectionError("offline"), StaticUnit()]})
    boundary = FaultBoundary(loader, _app("Billing"))

    async def _run():
        fallback = await boundary.mount()
        return await fallback.retry()

    unit = asyncio.run(_run())

    assert loader.cleared == 1
    assert boundary.status is BoundaryStatus.READY
    assert boundary.error is None
    assert unit.render(user="bo") == "rendered:bo"


def test_error_hook_failures_do_not_escape() -> None:
    seen: list[tuple[str, str]] = []

    def hook(exc: Exception, phase: str) -> None:
        seen.append((str(exc), phase))
        raise RuntimeError("hook broke")

    loader = FakeLoader({"billing": [RuntimeError("boom")]})
    boundary = FaultBoundary(loader, _app("Billing"), on_error=hook)

    result = asyncio.run(boundary.mount())

    assert isinstance(result, Fallback)
    assert seen == [("boom", "load")]


def test_render_before_mount_is_a_programming_error() -> None:
    boundary = FaultBoundary(FakeLoader({}), _app("Billing"))
    try:
        boundary.render()
    except RuntimeError as exc:
        assert "not mounted" in str(exc)
    else:
        raise AssertionError("render() should fail before mount()")
