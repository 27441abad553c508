"""WebSocket endpoint for the status channel."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from ...channel.auth import IdentityError
from ...channel.hub import ChannelConnection
from ...logging_utils import get_logger
from ..container import AppContainer

_LOG = get_logger("channel.ws")


def build_channel_router(container: AppContainer) -> APIRouter:
    router = APIRouter()
    channel = container.channel
    verifier = container.verifier

    @router.websocket(container.config.channel.path)
    async def status_channel(
        websocket: WebSocket,
        token: str | None = Query(None),
        app_id: str | None = Query(None, alias="appId"),
    ) -> None:
        try:
            identity = verifier.verify_optional(token)
        except IdentityError as exc:
            _LOG.warning("Channel handshake rejected: {}", exc)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        await websocket.accept()
        connection = channel.connect(app_id, identity)
        sender = asyncio.create_task(_pump(websocket, connection))
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    message = json.loads(text)
                except json.JSONDecodeError:
                    message = None
                channel.handle_client_message(connection, message)
        except WebSocketDisconnect:
            pass
        finally:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            channel.disconnect(connection)

    return router


async def _pump(websocket: WebSocket, connection: ChannelConnection) -> None:
    while True:
        payload = await connection.queue.get()
        try:
            await websocket.send_json(payload)
        except Exception as exc:
            _LOG.debug("Send to {} failed: {}", connection.id, exc)
            return
