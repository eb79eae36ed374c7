"""
Player: the consuming side of the relay.

Each player owns one playback pipeline:

    relay /ws ──▶ RelayConsumer.dispatch ──▶ PlaybackQueue ──▶ ContentResolver
                                                   │              (missing text)
                                                   ▼
                                           PresentationEngine
                                   display ─▶ unlock gate ─▶ audio clip | speech

Items are presented strictly one at a time. Every failure inside one item is
recovered locally (raw reference as text, fallback pause, watchdog) so the
queue always moves on to the next item.
"""

from .outputs import AudioOutput, SpeechOutput
from .playback_queue import PlaybackQueue
from .presentation import DisplayState, PresentationEngine, PresentationPhase, UnlockGate
from .resolver import ContentResolver

__all__ = [
    "AudioOutput",
    "ContentResolver",
    "DisplayState",
    "PlaybackQueue",
    "PresentationEngine",
    "PresentationPhase",
    "SpeechOutput",
    "UnlockGate",
]
