# src/verser/api/v1/endpoints/realtime.py
"""WebSocket entry point for the presence/message relay."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from verser.services.relay import ping_frame

from ..dependencies import RelayHubDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

# 1001 "going away": used when the heartbeat gives up on a peer.
CLOSE_GOING_AWAY = 1001


class WebSocketRelaySocket:
    """Adapts a Starlette ``WebSocket`` to the hub's socket protocol.

    ASGI does not surface WebSocket control frames, so ``ping`` is a JSON
    ``{"type": "ping"}`` text frame and clients answer with ``{"type": "pong"}``.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        try:
            await self.websocket.send_text(data)
        except (RuntimeError, OSError, WebSocketDisconnect) as exc:
            raise ConnectionError(f"websocket send failed: {exc}") from exc

    async def ping(self) -> None:
        await self.send_text(ping_frame())

    async def terminate(self) -> None:
        if not self.is_open:
            return
        try:
            await self.websocket.close(code=CLOSE_GOING_AWAY)
        except (RuntimeError, OSError) as exc:
            logger.debug("Close on dead websocket failed: %s", exc)


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket, hub: RelayHubDep) -> None:
    """Accept a client and feed its text frames to the relay hub."""
    # Registered before accept() so no broadcast after the handshake can miss it.
    conn = hub.register(WebSocketRelaySocket(websocket))
    try:
        await websocket.accept()
        while True:
            raw = await websocket.receive_text()
            await hub.handle_frame(conn, raw)
    except WebSocketDisconnect as exc:
        logger.debug("Client left relay (code %s)", exc.code)
    except RuntimeError as exc:
        # Raised by receive_text once the heartbeat has closed the socket.
        logger.debug("Relay socket no longer readable: %s", exc)
    finally:
        await hub.disconnect(conn)
