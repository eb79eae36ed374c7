"""Fan-out of relay messages to every connected player."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from fastapi import WebSocket
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from ..schemas.messages import BulkMessage, ClearMessage, ReadMessage, ReadRequest, to_wire

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SECONDS = 5.0


@dataclass
class PlayerConnection:
    """A single connected player socket."""

    client_id: str
    websocket: WebSocket
    connected_at: float = field(default_factory=time.monotonic)

    @property
    def ready(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )


class ConnectionManager:
    """Tracks player sockets and broadcasts messages to all of them.

    Broadcasts are serialized so every player sees messages in the order they
    were sent. Players that join later never receive earlier messages. A
    player whose send does not finish within `send_timeout` is dropped so it
    cannot hold up the others.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        *,
        send_timeout: float = SEND_TIMEOUT_SECONDS,
    ) -> None:
        self.active_connections: dict[str, PlayerConnection] = {}
        self.last_broadcast_at: float | None = None
        self._clock = clock
        self._send_timeout = send_timeout
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a new player socket and register it."""
        await websocket.accept()
        client_id = f"player-{next(self._ids)}"
        self.active_connections[client_id] = PlayerConnection(client_id, websocket)
        logger.info("Player connected: %s (%d total)", client_id, self.connection_count)
        return client_id

    def disconnect(self, client_id: str) -> None:
        if self.active_connections.pop(client_id, None) is not None:
            logger.info(
                "Player disconnected: %s (%d remaining)", client_id, self.connection_count
            )

    async def broadcast(self, message: BaseModel | dict[str, Any]) -> int:
        """Send *message* to every ready player. Returns the delivery count."""
        payload = to_wire(message) if isinstance(message, BaseModel) else dict(message)
        text = json.dumps(payload, ensure_ascii=False)

        async with self._lock:
            self.last_broadcast_at = self._clock()
            delivered = 0
            for connection in list(self.active_connections.values()):
                if not connection.ready:
                    continue
                try:
                    await asyncio.wait_for(
                        connection.websocket.send_text(text), timeout=self._send_timeout
                    )
                    delivered += 1
                except asyncio.TimeoutError:
                    logger.warning(
                        "Dropping %s: send stalled for %.1fs",
                        connection.client_id,
                        self._send_timeout,
                    )
                    self.disconnect(connection.client_id)
                except Exception as exc:
                    logger.warning("Error sending to %s: %s", connection.client_id, exc)
                    self.disconnect(connection.client_id)

        logger.debug(
            "Broadcast %s to %d/%d players",
            payload.get("type"),
            delivered,
            self.connection_count,
        )
        return delivered

    async def send_read(self, request: ReadRequest) -> int:
        message = ReadMessage.model_validate(request.model_dump())
        return await self.broadcast(message)

    async def send_bulk(self, requests: Iterable[ReadRequest]) -> int:
        return await self.broadcast(BulkMessage(items=list(requests)))

    async def send_clear(self) -> int:
        return await self.broadcast(ClearMessage())


__all__ = ["ConnectionManager", "PlayerConnection"]
