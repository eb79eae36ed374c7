"""Verse Player - terminal client that reads relayed verses aloud."""

from __future__ import annotations

import argparse
import asyncio
import logging
from contextlib import suppress
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.style import Style

from ..config import PlayerSettings, get_player_settings
from ..logging_handlers import configure_logging
from .consumer import RelayConsumer
from .devices import SoundDeviceAudioOutput
from .playback_queue import PlaybackQueue
from .presentation import DisplayState, PresentationEngine, UnlockGate
from .resolver import ContentResolver
from .speech import Pyttsx3SpeechOutput, create_speech_output

logger = logging.getLogger(__name__)

VERSE_STYLE = Style(color="bright_white", bold=True)
REFERENCE_STYLE = Style(color="bright_green")
PROMPT_STYLE = Style(color="yellow", bold=True)
ONLINE_STYLE = Style(color="green")
OFFLINE_STYLE = Style(color="red")


class ConsoleDisplay:
    """Renders DisplayState changes to the terminal."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self._last = DisplayState()

    def __call__(self, state: DisplayState) -> None:
        previous, self._last = self._last, state

        if state.connected != previous.connected:
            if state.connected:
                self.console.print("● connected", style=ONLINE_STYLE)
            else:
                self.console.print("● disconnected", style=OFFLINE_STYLE)

        if state.unlock_prompt_visible and not previous.unlock_prompt_visible:
            self.console.print("Press Enter to enable audio", style=PROMPT_STYLE)

        if (state.current_reference, state.current_text) != (
            previous.current_reference,
            previous.current_text,
        ) and state.current_reference:
            self.console.print(
                Panel(
                    state.current_text,
                    title=state.current_reference,
                    title_align="left",
                    style=VERSE_STYLE,
                    border_style=REFERENCE_STYLE,
                    subtitle=f"next: {state.preview}" if state.preview else None,
                )
            )


class VersePlayer:
    """Wires settings, devices and the playback pipeline together."""

    def __init__(self, settings: PlayerSettings, console: Optional[Console] = None) -> None:
        self.settings = settings
        self.console = console or Console()
        self.speech: Optional[Pyttsx3SpeechOutput] = create_speech_output(settings.speech_rate)
        self.engine = PresentationEngine(
            UnlockGate(),
            audio=SoundDeviceAudioOutput(),
            speech=self.speech,
            display=ConsoleDisplay(self.console),
            watchdog_seconds=settings.speech_watchdog_seconds,
            fallback_seconds=settings.presentation_fallback_seconds,
        )
        self.queue = PlaybackQueue(
            self.engine,
            ContentResolver(
                str(settings.lookup_base_url),
                translation=settings.lookup_translation,
                timeout=settings.lookup_timeout_seconds,
            ),
            gap_seconds=settings.inter_item_gap_seconds,
        )
        self.consumer = RelayConsumer(
            settings.relay_ws_url,
            self.queue,
            self.engine,
            reconnect_delay=settings.reconnect_seconds,
        )

    async def _read_keys(self) -> None:
        """Enter unlocks audio; `q` quits."""
        while True:
            line = await asyncio.to_thread(input)
            if line.strip().lower() in {"q", "quit", "exit"}:
                return
            if not self.engine.gate.unlocked:
                await self.engine.unlock()
                self.console.print("Audio enabled", style=ONLINE_STYLE)

    async def run(self) -> None:
        self.console.print(f"[bold]Verse Player[/bold] listening on {self.settings.relay_ws_url}")
        self.engine.prompt_unlock_if_needed()

        listener = asyncio.create_task(self.consumer.run())
        try:
            await self._read_keys()
        except EOFError:
            self.console.print("\n[dim]Goodbye![/dim]")
        finally:
            listener.cancel()
            with suppress(asyncio.CancelledError):
                await listener
            if self.speech is not None:
                self.speech.close()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Verse Player - reads verses relayed from live chat",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  verse-player                                 Connect to ws://localhost:8080/ws
  verse-player --relay wss://relay.example/ws  Connect to a deployed relay

Environment Variables:
  RELAY_WS_URL         Default relay URL
  LOOKUP_TRANSLATION   Translation requested from the verse lookup (default: kjv)
""",
    )
    parser.add_argument("--relay", "-r", default=None, help="Relay WebSocket URL")
    parser.add_argument(
        "--translation", "-t", default=None, help="Translation for verse lookups"
    )
    args = parser.parse_args()

    configure_logging(prefix="player")

    settings = get_player_settings()
    overrides = {}
    if args.relay:
        overrides["relay_ws_url"] = args.relay
    if args.translation:
        overrides["lookup_translation"] = args.translation
    if overrides:
        settings = settings.model_copy(update=overrides)

    player = VersePlayer(settings)
    try:
        asyncio.run(player.run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
