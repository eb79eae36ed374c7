"""
Presentation engine: shows one read request and reads it aloud.

Each item moves through

    DISPLAYING -> (UNLOCK_WAIT) -> PLAYING -> DONE

DISPLAYING updates the visible state and cannot fail. UNLOCK_WAIT is entered
only while the unlock gate is closed and suspends nothing but this player's
loop. PLAYING picks one of three branches:

- the item has an audio URL: play it and wait for its natural end, with no
  timeout. If playback cannot start, the item is finished at once.
- otherwise speak the text, racing the utterance against a watchdog. If
  synthesis fails, pause for the fallback duration instead.
- no speech engine at all: pause for the fallback duration.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..schemas.messages import ReadRequest
from .outputs import AudioOutput, SpeechOutput

logger = logging.getLogger(__name__)

SPEECH_WATCHDOG_SECONDS = 15.0
FALLBACK_SECONDS = 4.0


class PresentationPhase(str, Enum):
    IDLE = "idle"
    DISPLAYING = "displaying"
    UNLOCK_WAIT = "unlock_wait"
    PLAYING = "playing"
    DONE = "done"


class UnlockGate:
    """One-way switch opened by an explicit user gesture."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def unlocked(self) -> bool:
        return self._event.is_set()

    def unlock(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(frozen=True)
class DisplayState:
    current_text: str = ""
    current_reference: str = ""
    preview: str = ""
    unlock_prompt_visible: bool = False
    connected: bool = False


Display = Callable[[DisplayState], None]


class PresentationEngine:
    """Presents read requests for a single player."""

    def __init__(
        self,
        gate: UnlockGate,
        *,
        audio: Optional[AudioOutput] = None,
        speech: Optional[SpeechOutput] = None,
        display: Optional[Display] = None,
        watchdog_seconds: float = SPEECH_WATCHDOG_SECONDS,
        fallback_seconds: float = FALLBACK_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.gate = gate
        self.phase = PresentationPhase.IDLE
        self.state = DisplayState()
        self._audio = audio
        self._speech = speech
        self._display = display
        self._watchdog_seconds = watchdog_seconds
        self._fallback_seconds = fallback_seconds
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Display state
    # ------------------------------------------------------------------

    def _update(self, **changes: object) -> None:
        self.state = replace(self.state, **changes)
        if self._display is None:
            return
        try:
            self._display(self.state)
        except Exception as exc:
            logger.warning("Display update failed: %s", exc)

    def set_preview(self, reference: str | None) -> None:
        self._update(preview=reference or "")

    def set_connected(self, connected: bool) -> None:
        self._update(connected=connected)

    def prompt_unlock_if_needed(self) -> None:
        if not self.gate.unlocked and not self.state.unlock_prompt_visible:
            self._update(unlock_prompt_visible=True)

    # ------------------------------------------------------------------
    # Unlock gesture
    # ------------------------------------------------------------------

    async def unlock(self) -> None:
        """Handle the user gesture: open the gate, then prime the outputs."""
        self.gate.unlock()
        self._update(unlock_prompt_visible=False)
        for output in (self._audio, self._speech):
            if output is None:
                continue
            try:
                await output.prime()
            except Exception as exc:
                logger.debug("Priming %s failed: %s", type(output).__name__, exc)

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    async def present(self, item: ReadRequest, preview: str | None = None) -> None:
        """Present *item* to completion."""
        self.phase = PresentationPhase.DISPLAYING
        self._update(
            current_text=item.text or item.reference,
            current_reference=item.reference,
            preview=preview or "",
        )

        try:
            if not self.gate.unlocked:
                self.phase = PresentationPhase.UNLOCK_WAIT
                self.prompt_unlock_if_needed()
                logger.info("Waiting for unlock before reading %s", item.reference)
                await self.gate.wait()

            self.phase = PresentationPhase.PLAYING
            if item.audio_url and self._audio is not None:
                await self._play_clip(self._audio, item.audio_url, item.reference)
            else:
                await self._speak(item.text or item.reference)
        finally:
            self.phase = PresentationPhase.DONE

    async def _play_clip(self, audio: AudioOutput, url: str, reference: str) -> None:
        try:
            await audio.start(url)
        except Exception as exc:
            logger.warning("Audio for %s failed to start: %s", reference, exc)
            return
        await audio.wait_finished()

    async def _speak(self, text: str) -> None:
        if self._speech is None:
            await self._sleep(self._fallback_seconds)
            return

        try:
            self._speech.cancel()
        except Exception as exc:
            logger.debug("Cancelling previous speech failed: %s", exc)

        utterance = asyncio.ensure_future(self._speech.speak(text))
        try:
            done, _ = await asyncio.wait({utterance}, timeout=self._watchdog_seconds)
        except asyncio.CancelledError:
            utterance.cancel()
            raise

        if not done:
            logger.info("Speech watchdog fired after %.1fs", self._watchdog_seconds)
            utterance.cancel()
            try:
                self._speech.cancel()
            except Exception as exc:
                logger.debug("Cancelling speech after watchdog failed: %s", exc)
            return

        if utterance.cancelled():
            return
        exc = utterance.exception()
        if exc is not None:
            logger.warning("Speech synthesis failed: %s", exc)
            await self._sleep(self._fallback_seconds)


__all__ = [
    "Display",
    "DisplayState",
    "PresentationEngine",
    "PresentationPhase",
    "UnlockGate",
]
