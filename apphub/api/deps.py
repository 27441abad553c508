"""API dependency helpers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from ..channel.auth import Identity, IdentityError, bearer_token
from .container import AppContainer


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def require_identity(request: Request) -> Identity | None:
    container = get_container(request)
    if not container.config.auth.require_identity:
        return None
    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        raise HTTPException(status_code=401, detail="unauthorized")
    try:
        return container.verifier.verify(token)
    except IdentityError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def require_admin(request: Request) -> Identity | None:
    identity = require_identity(request)
    if identity is None:
        return None
    role = get_container(request).config.auth.admin_role
    if not identity.has_role(role):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return identity
