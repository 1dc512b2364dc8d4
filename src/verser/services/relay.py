# src/verser/services/relay.py
"""Realtime presence and message relay.

The hub owns the set of live connections. Inbound JSON frames update
presence, persist chat messages and fan events out to other connections.
A background heartbeat evicts connections that stop answering pings.

The hub is transport-agnostic: anything implementing :class:`RelaySocket`
can be registered. The FastAPI adapter lives in
``verser.api.v1.endpoints.realtime``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import ValidationError

from verser.core.settings import settings
from verser.models import UserStatus
from verser.schemas.conversation import MessageResponse
from verser.schemas.realtime import (
    INBOUND_FRAME_TYPES,
    JoinFrame,
    NewMessageEvent,
    PingEvent,
    PongFrame,
    SendMessageFrame,
    TypingFrame,
    UserStatusEvent,
    UserTypingEvent,
    inbound_frame_adapter,
)
from verser.schemas.user import UserPublic
from verser.storage import Storage, StorageError

logger = logging.getLogger(__name__)


class RelaySocket(Protocol):
    """Minimal transport surface the hub needs from a socket."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None:
        """Deliver a text frame; raise ``ConnectionError`` if the peer is gone."""

    async def ping(self) -> None:
        """Ask the peer to prove it is still there."""

    async def terminate(self) -> None:
        """Drop the transport without a closing handshake."""


@dataclass(eq=False)
class RelayConnection:
    """Hub-side state for one accepted socket."""

    socket: RelaySocket
    user_id: int | None = None
    is_alive: bool = True
    closed: bool = False


class RelayHub:
    """Holds every open connection and routes frames between them."""

    def __init__(self, storage: Storage, heartbeat_interval: float | None = None) -> None:
        """Initialize the hub.

        Args:
            storage: Backend used for presence updates and message persistence.
            heartbeat_interval: Seconds between heartbeat sweeps. Defaults to
                ``settings.relay_heartbeat_interval_seconds``.
        """
        self.storage = storage
        self.heartbeat_interval = (
            heartbeat_interval
            if heartbeat_interval is not None
            else settings.relay_heartbeat_interval_seconds
        )
        self.connections: set[RelayConnection] = set()
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    # Connection lifecycle

    def register(self, socket: RelaySocket) -> RelayConnection:
        """Track a newly accepted socket as an unbound, alive connection."""
        conn = RelayConnection(socket=socket)
        self.connections.add(conn)
        logger.debug("Relay connection opened (%d active)", len(self.connections))
        return conn

    async def disconnect(self, conn: RelayConnection) -> None:
        """Forget ``conn`` and announce its user offline.

        Safe to call more than once; only the first call has any effect.
        """
        if conn.closed:
            return
        conn.closed = True
        self.connections.discard(conn)
        logger.debug("Relay connection closed (%d active)", len(self.connections))

        if not conn.user_id:
            return
        try:
            await self.storage.update_user_status(conn.user_id, UserStatus.OFFLINE)
        except StorageError as exc:
            logger.error("Could not mark user %s offline: %s", conn.user_id, exc)
            return
        await self.broadcast(
            UserStatusEvent(user_id=conn.user_id, status=UserStatus.OFFLINE).to_wire()
        )

    # Frame handling

    async def handle_frame(self, conn: RelayConnection, raw: str | bytes) -> None:
        """Parse and dispatch one inbound frame.

        Bad input never closes the connection: it is logged and dropped.
        """
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Dropping non-JSON relay frame")
            return
        if not isinstance(payload, dict):
            logger.warning("Dropping relay frame that is not a JSON object")
            return
        frame_type = payload.get("type")
        if not isinstance(frame_type, str) or frame_type not in INBOUND_FRAME_TYPES:
            logger.debug("Ignoring relay frame of type %r", frame_type)
            return

        try:
            frame = inbound_frame_adapter.validate_python(payload)
        except ValidationError as exc:
            logger.warning("Dropping invalid %s frame: %s", payload["type"], exc)
            return

        try:
            if isinstance(frame, JoinFrame):
                await self._on_join(conn, frame)
            elif isinstance(frame, SendMessageFrame):
                await self._on_send_message(frame)
            elif isinstance(frame, TypingFrame):
                await self._on_typing(conn, frame)
            elif isinstance(frame, PongFrame):
                conn.is_alive = True
        except StorageError as exc:
            logger.error("Storage failure while handling %s frame: %s", frame.type, exc)

    async def _on_join(self, conn: RelayConnection, frame: JoinFrame) -> None:
        if not frame.user_id:
            conn.user_id = frame.user_id
            return
        # Bind after the status write: a failed join keeps the previous binding.
        await self.storage.update_user_status(frame.user_id, UserStatus.ONLINE)
        conn.user_id = frame.user_id
        await self.broadcast(
            UserStatusEvent(user_id=frame.user_id, status=UserStatus.ONLINE).to_wire(),
            exclude=conn,
        )

    async def _on_send_message(self, frame: SendMessageFrame) -> None:
        if not (frame.user_id and frame.conversation_id and frame.content):
            logger.debug("Dropping incomplete send_message frame")
            return

        message = await self.storage.create_message(
            conversation_id=frame.conversation_id,
            user_id=frame.user_id,
            content=frame.content,
            type="text",
        )
        user = await self.storage.get_user(frame.user_id)
        event = NewMessageEvent(
            message=MessageResponse.model_validate(message),
            user=UserPublic.model_validate(user) if user is not None else None,
        )
        await self.broadcast(event.to_wire())

    async def _on_typing(self, conn: RelayConnection, frame: TypingFrame) -> None:
        event = UserTypingEvent(
            user_id=frame.user_id,
            conversation_id=frame.conversation_id,
            is_typing=frame.is_typing,
        )
        await self.broadcast(event.to_wire(), exclude=conn)

    # Fan-out

    async def broadcast(
        self, payload: dict[str, Any], exclude: RelayConnection | None = None
    ) -> int:
        """Send ``payload`` to every open connection except ``exclude``.

        Returns the number of sockets the frame was delivered to.
        """
        data = json.dumps(payload)
        delivered = 0
        # Snapshot: the set can change while a send is suspended.
        for conn in list(self.connections):
            if conn is exclude or not conn.socket.is_open:
                continue
            try:
                await conn.socket.send_text(data)
            except ConnectionError as exc:
                logger.warning("Relay send failed: %s", exc)
                continue
            delivered += 1
        return delivered

    # Heartbeat

    async def sweep(self) -> None:
        """Run one heartbeat pass over every connection."""
        for conn in list(self.connections):
            if not conn.is_alive:
                logger.info("Terminating unresponsive relay connection (user %s)", conn.user_id)
                await conn.socket.terminate()
                await self.disconnect(conn)
                continue
            conn.is_alive = False
            try:
                await conn.socket.ping()
            except ConnectionError as exc:
                logger.warning("Relay ping failed: %s", exc)

    async def start(self) -> None:
        """Start the background heartbeat loop."""
        if self._task is None or self._task.done():
            # Fresh event per run: an Event is bound to the loop that first waits on it.
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the heartbeat loop and wait for it to finish."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        interval = max(0.01, float(self.heartbeat_interval))
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except TimeoutError:
                pass
            else:
                continue

            try:
                await self.sweep()
            except (StorageError, OSError, RuntimeError) as exc:
                logger.warning("Relay heartbeat sweep failed: %s", exc)
            except (ValueError, TypeError, KeyError, AttributeError) as exc:
                logger.error("Relay heartbeat sweep hit a data error: %s", exc, exc_info=True)


def ping_frame() -> str:
    """Serialized heartbeat ping for transports without control frames."""
    return json.dumps(PingEvent().to_wire())
