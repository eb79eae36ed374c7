"""Idle keepalive: reads a filler verse when players are connected but quiet."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from contextlib import suppress
from typing import Callable, Sequence

from ..references import canonicalize
from ..schemas.messages import ReadRequest
from .broadcast import ConnectionManager

logger = logging.getLogger(__name__)

KEEPALIVE_INTERVAL_SECONDS = 60.0
QUIET_GAP_SECONDS = 55.0
KEEPALIVE_SOURCE = "keepalive"


class IdleKeepalive:
    """Periodically checks for idleness and broadcasts one filler reference.

    Activity is whatever `ConnectionManager.broadcast` last recorded, so chat
    admissions, manual injections and previous keepalives all reset the clock.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        references: Sequence[str],
        *,
        interval: float = KEEPALIVE_INTERVAL_SECONDS,
        quiet_gap: float = QUIET_GAP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        if not references:
            raise ValueError("keepalive needs at least one filler reference")
        self._manager = manager
        self._references = [canonicalize(ref) for ref in references]
        self._interval = interval
        self._quiet_gap = quiet_gap
        self._clock = clock
        self._rng = rng or random.Random()
        self._task: asyncio.Task[None] | None = None

    def is_idle(self) -> bool:
        if self._manager.connection_count == 0:
            return False
        last = self._manager.last_broadcast_at
        return last is None or self._clock() - last >= self._quiet_gap

    async def tick(self) -> bool:
        """Run one idle check. Returns True if a filler was broadcast."""
        if not self.is_idle():
            return False

        reference = self._rng.choice(self._references)
        logger.info("Idle for %.0fs, sending keepalive %s", self._quiet_gap, reference)
        await self._manager.send_read(
            ReadRequest(reference=reference, source_user=KEEPALIVE_SOURCE)
        )
        return True

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Keepalive tick failed: %s", exc)


__all__ = ["IdleKeepalive", "KEEPALIVE_SOURCE"]
