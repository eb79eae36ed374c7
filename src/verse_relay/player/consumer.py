"""WebSocket client that feeds relay messages into the playback queue."""

from __future__ import annotations

import asyncio
import logging

import websockets
from websockets.exceptions import WebSocketException
from pydantic import ValidationError

from ..schemas.messages import BulkMessage, ClearMessage, ReadMessage, ReadRequest, relay_message_adapter
from .playback_queue import PlaybackQueue
from .presentation import PresentationEngine

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 2.5


def _as_request(message: ReadMessage) -> ReadRequest:
    return ReadRequest.model_validate(message.model_dump(exclude={"type"}))


class RelayConsumer:
    """Keeps one connection to the relay open and dispatches its messages."""

    def __init__(
        self,
        url: str,
        queue: PlaybackQueue,
        engine: PresentationEngine,
        *,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self.url = url
        self._queue = queue
        self._engine = engine
        self._reconnect_delay = reconnect_delay

    def dispatch(self, raw: str | bytes) -> None:
        """Apply one relay message. Malformed messages are ignored."""
        try:
            message = relay_message_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.debug("Ignoring bad message: %s", exc.errors()[:1])
            return

        if isinstance(message, ReadMessage):
            self._queue.enqueue(_as_request(message))
        elif isinstance(message, BulkMessage):
            for item in message.items:
                self._queue.enqueue(item)
        elif isinstance(message, ClearMessage):
            self._queue.clear()

        self._engine.prompt_unlock_if_needed()

    async def run(self) -> None:
        """Listen forever, reconnecting after a fixed delay."""
        while True:
            try:
                async with websockets.connect(self.url) as websocket:
                    logger.info("Connected to relay %s", self.url)
                    self._engine.set_connected(True)
                    async for raw in websocket:
                        self.dispatch(raw)
                logger.warning("Relay closed the connection")
            except asyncio.CancelledError:
                raise
            except (OSError, WebSocketException) as exc:
                logger.warning("Relay connection failed: %s", exc)
            finally:
                self._engine.set_connected(False)
            await asyncio.sleep(self._reconnect_delay)


__all__ = ["RelayConsumer"]
