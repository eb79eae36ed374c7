"""Offline speech output backed by pyttsx3."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

import pyttsx3

from .outputs import SpeechOutput

logger = logging.getLogger(__name__)


def _speech_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="tts")


class Pyttsx3SpeechOutput(SpeechOutput):
    """pyttsx3 engine driven from a dedicated worker thread.

    Utterances run one at a time on a single-thread executor. `cancel` calls
    `engine.stop()` directly since the worker is blocked inside `runAndWait`.
    If an utterance is still running when the next one arrives, the stuck
    worker is abandoned and a fresh executor takes over, so one hung
    utterance never queues the rest behind it.
    """

    def __init__(self, engine: Any, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self._engine = engine
        self._executor = executor or _speech_executor()
        self._in_flight: Optional[Future[None]] = None

    def _say(self, text: str) -> None:
        self._engine.say(text)
        self._engine.runAndWait()

    def _ready_executor(self) -> ThreadPoolExecutor:
        if self._in_flight is not None and not self._in_flight.done():
            logger.warning("Previous utterance is still running, replacing the speech worker")
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = _speech_executor()
        return self._executor

    async def _run(self, text: str) -> None:
        future = self._ready_executor().submit(self._say, text)
        self._in_flight = future
        await asyncio.wrap_future(future)

    async def speak(self, text: str) -> None:
        await self._run(text)

    def cancel(self) -> None:
        self._engine.stop()

    async def prime(self) -> None:
        self.cancel()
        await self._run(" ")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def create_speech_output(rate: int = 190, volume: float = 1.0) -> Optional[Pyttsx3SpeechOutput]:
    """Build the speech output, or return None when no TTS engine is available."""
    executor = _speech_executor()

    def _init() -> Any:
        engine = pyttsx3.init()
        engine.setProperty("rate", rate)
        engine.setProperty("volume", volume)
        return engine

    try:
        engine = executor.submit(_init).result()
    except Exception as exc:
        logger.warning("Speech synthesis unavailable: %s", exc)
        executor.shutdown(wait=False)
        return None
    return Pyttsx3SpeechOutput(engine, executor)


__all__ = ["Pyttsx3SpeechOutput", "create_speech_output"]
