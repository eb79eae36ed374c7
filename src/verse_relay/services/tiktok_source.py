"""TikTok LIVE chat adapter built on the TikTokLive client."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import AsyncIterator

from TikTokLive import TikTokLiveClient
from TikTokLive.events import CommentEvent, ConnectEvent, DisconnectEvent, LiveEndEvent

from .ingestion import ChatEvent, ChatEventSource

logger = logging.getLogger(__name__)

# Marks the end of a connection inside the event queue
_CLOSED = object()


class TikTokChatSource(ChatEventSource):
    """Yields comments from one TikTok LIVE room until the room disconnects."""

    name = "TikTok"

    def __init__(self, unique_id: str, *, request_timeout: float = 10.0) -> None:
        self.unique_id = unique_id.strip().lstrip("@")
        self._request_timeout = request_timeout

    def _build_client(self) -> TikTokLiveClient:
        return TikTokLiveClient(
            unique_id=f"@{self.unique_id}",
            web_kwargs={"httpx_kwargs": {"timeout": self._request_timeout}},
        )

    async def events(self) -> AsyncIterator[ChatEvent]:
        client = self._build_client()
        queue: asyncio.Queue[object] = asyncio.Queue()

        async def on_connect(event: ConnectEvent) -> None:
            logger.info("Connected to @%s (room %s)", self.unique_id, event.room_id)

        async def on_comment(event: CommentEvent) -> None:
            user = event.user
            user_id = str(getattr(user, "id", "") or getattr(user, "unique_id", "") or "anon")
            display_name = getattr(user, "unique_id", "") or "user"
            await queue.put(
                ChatEvent(text=event.comment or "", user_id=user_id, display_name=display_name)
            )

        async def on_live_end(_: LiveEndEvent) -> None:
            logger.warning("Live ended for @%s", self.unique_id)

        async def on_disconnect(_: DisconnectEvent) -> None:
            await queue.put(_CLOSED)

        client.add_listener(ConnectEvent, on_connect)
        client.add_listener(CommentEvent, on_comment)
        client.add_listener(LiveEndEvent, on_live_end)
        client.add_listener(DisconnectEvent, on_disconnect)

        task = await client.start()
        task.add_done_callback(lambda _: queue.put_nowait(_CLOSED))
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    break
                yield item  # type: ignore[misc]
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]
        finally:
            try:
                await client.disconnect()
            except Exception as exc:
                logger.debug("TikTok disconnect raised: %s", exc)
            if not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task


__all__ = ["TikTokChatSource"]
