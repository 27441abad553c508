"""Renderable units produced by the client loader."""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Any, Callable, Union

SANDBOX_PERMISSIONS = ("allow-scripts", "allow-same-origin", "allow-forms", "allow-popups")


@dataclass(frozen=True)
class RemoteModuleUnit:
    app_id: str
    app_name: str
    component: Callable[..., Any]
    module: Any = field(default=None, repr=False, compare=False)

    def render(self, **props: Any) -> Any:
        return self.component(**props)


@dataclass(frozen=True)
class IframeEmbed:
    app_id: str
    title: str
    src: str
    sandbox: tuple[str, ...] = SANDBOX_PERMISSIONS

    def render(self, **props: Any) -> str:
        attrs = {key: str(value) for key, value in props.items()}
        attrs.update(src=self.src, title=self.title, sandbox=" ".join(self.sandbox))
        return f"<iframe {_attributes(attrs)}></iframe>"


@dataclass(frozen=True)
class WebComponentUnit:
    app_id: str
    app_name: str
    tag_name: str
    element: Any = field(default=None, repr=False, compare=False)

    def render(self, **props: Any) -> str:
        attrs = _attributes({key: str(value) for key, value in props.items()})
        opening = f"<{self.tag_name} {attrs}>" if attrs else f"<{self.tag_name}>"
        return f"{opening}</{self.tag_name}>"


RenderableUnit = Union[RemoteModuleUnit, IframeEmbed, WebComponentUnit]


def _attributes(attrs: dict[str, str]) -> str:
    return " ".join(f'{key}="{html.escape(value, quote=True)}"' for key, value in attrs.items())
