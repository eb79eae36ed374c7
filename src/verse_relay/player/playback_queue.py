"""Per-player FIFO that feeds the presentation engine one item at a time."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from ..references import canonicalize
from ..schemas.messages import ReadRequest
from .presentation import PresentationEngine
from .resolver import ContentResolver

logger = logging.getLogger(__name__)

INTER_ITEM_GAP_SECONDS = 1.0


class PlaybackQueue:
    """Queue of pending read requests with a single drain task.

    `playing` is written only at points with no suspension in between the
    emptiness check and the write, so an enqueue either lands in the queue
    the running drain will still see, or starts a new drain. Never both.
    """

    def __init__(
        self,
        engine: PresentationEngine,
        resolver: ContentResolver,
        *,
        gap_seconds: float = INTER_ITEM_GAP_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._engine = engine
        self._resolver = resolver
        self._gap_seconds = gap_seconds
        self._sleep = sleep
        self._items: Deque[ReadRequest] = deque()
        self._task: Optional[asyncio.Task[None]] = None
        self.playing = False

    def __len__(self) -> int:
        return len(self._items)

    def _head_reference(self) -> Optional[str]:
        return self._items[0].reference if self._items else None

    def enqueue(self, item: ReadRequest) -> None:
        reference = canonicalize(item.reference)
        if not reference:
            logger.debug("Ignoring read request with an empty reference")
            return
        if reference != item.reference:
            item = item.model_copy(update={"reference": reference})

        self._items.append(item)
        self._engine.set_preview(self._head_reference())

        if not self.playing:
            self.playing = True
            self._task = asyncio.create_task(self._drain())

    def clear(self) -> int:
        """Drop every queued item. The item being presented keeps playing."""
        dropped = len(self._items)
        self._items.clear()
        self._engine.set_preview(None)
        if dropped:
            logger.info("Cleared %d queued item(s)", dropped)
        return dropped

    async def join(self) -> None:
        """Wait until the current drain (if any) has emptied the queue."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    async def _present_one(self, item: ReadRequest) -> None:
        if not item.text:
            item = item.model_copy(update={"text": await self._resolver.resolve(item.reference)})
        await self._engine.present(item, preview=self._head_reference())

    async def _drain(self) -> None:
        try:
            while self._items:
                item = self._items.popleft()
                try:
                    await self._present_one(item)
                    await self._sleep(self._gap_seconds)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.error("Failed to present %s", item.reference, exc_info=True)
                self._engine.set_preview(self._head_reference())
        finally:
            self.playing = False


__all__ = ["PlaybackQueue"]
