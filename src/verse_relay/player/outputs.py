"""Output contracts used by the presentation engine."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AudioStartError(RuntimeError):
    """The clip could not be loaded or playback could not begin."""


class AudioOutput(ABC):
    """Plays supplied audio clips, one at a time."""

    @abstractmethod
    async def start(self, url: str) -> None:
        """Load *url* and begin playback. Raises AudioStartError on failure."""

    @abstractmethod
    async def wait_finished(self) -> None:
        """Return once the clip started by `start` reaches its natural end."""

    async def prime(self) -> None:
        """Silent play/pause cycle after the unlock gesture."""


class SpeechOutput(ABC):
    """Speech synthesis engine."""

    @abstractmethod
    async def speak(self, text: str) -> None:
        """Speak *text*, returning when the utterance completes."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop any utterance in progress. Safe to call when idle."""

    async def prime(self) -> None:
        """Speak an empty utterance and cancel it right away."""
        self.cancel()


__all__ = ["AudioOutput", "AudioStartError", "SpeechOutput"]
