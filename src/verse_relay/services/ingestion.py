"""Chat ingestion: turns a live chat feed into admitted read requests."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Callable

from ..schemas.messages import ReadRequest
from .admission import AdmissionController, AdmittedReference
from .broadcast import ConnectionManager

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 15.0


@dataclass(frozen=True)
class ChatEvent:
    """One chat message from the monitored room."""

    text: str
    user_id: str
    display_name: str


class ChatEventSource(ABC):
    """A live chat feed.

    `events()` yields messages while the feed is connected. Returning or
    raising means the feed was lost; the coordinator reconnects by calling
    `events()` again.
    """

    name: str = "chat"

    @abstractmethod
    def events(self) -> AsyncIterator[ChatEvent]:
        raise NotImplementedError


class IngestionCoordinator:
    """Runs parse -> admit -> broadcast for every chat event, one at a time."""

    def __init__(
        self,
        source: ChatEventSource,
        admission: AdmissionController,
        manager: ConnectionManager,
        *,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._admission = admission
        self._manager = manager
        self._reconnect_delay = reconnect_delay
        self._clock = clock

    async def handle(self, event: ChatEvent) -> AdmittedReference | None:
        try:
            text = (event.text or "").strip()
            result = self._admission.admit(event.user_id, text, self._clock())
            if not isinstance(result, AdmittedReference):
                return None

            logger.info("Queue: %s (from %s)", result.reference, event.display_name)
            await self._manager.send_read(
                ReadRequest(reference=result.reference, source_user=event.display_name)
            )
            return result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.error("chat handler error", exc_info=True)
            return None

    async def run(self) -> None:
        """Consume the source forever, reconnecting after every disconnect."""
        while True:
            try:
                async for event in self._source.events():
                    await self.handle(event)
                logger.warning(
                    "%s disconnected, retrying in %.0fs",
                    self._source.name,
                    self._reconnect_delay,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(
                    "%s connect failed: %s, retrying in %.0fs",
                    self._source.name,
                    exc,
                    self._reconnect_delay,
                )
            await asyncio.sleep(self._reconnect_delay)


__all__ = ["ChatEvent", "ChatEventSource", "IngestionCoordinator"]
