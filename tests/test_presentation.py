import asyncio

import pytest

from verse_relay.player.outputs import AudioOutput, AudioStartError, SpeechOutput
from verse_relay.player.presentation import (
    DisplayState,
    PresentationEngine,
    PresentationPhase,
    UnlockGate,
)
from verse_relay.schemas.messages import ReadRequest


class FakeAudio(AudioOutput):
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.started: list[str] = []
        self.finished = asyncio.Event()
        self.primed = False

    async def start(self, url: str) -> None:
        if self.fail:
            raise AudioStartError("unsupported format")
        self.started.append(url)

    async def wait_finished(self) -> None:
        await self.finished.wait()

    async def prime(self) -> None:
        self.primed = True


class FakeSpeech(SpeechOutput):
    def __init__(self, *, hang: bool = False, fail: bool = False) -> None:
        self.hang = hang
        self.fail = fail
        self.spoken: list[str] = []
        self.cancels = 0

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        if self.fail:
            raise RuntimeError("no voices")
        if self.hang:
            await asyncio.Event().wait()

    def cancel(self) -> None:
        self.cancels += 1


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def unlocked_gate() -> UnlockGate:
    gate = UnlockGate()
    gate.unlock()
    return gate


@pytest.mark.asyncio
async def test_speaks_text_and_updates_display() -> None:
    states: list[DisplayState] = []
    speech = FakeSpeech()
    engine = PresentationEngine(unlocked_gate(), speech=speech, display=states.append)

    await engine.present(ReadRequest(reference="John 3:16", text="For God so loved"), "Psalm 23:1")

    assert speech.spoken == ["For God so loved"]
    assert engine.phase is PresentationPhase.DONE
    assert states[-1].current_reference == "John 3:16"
    assert states[-1].current_text == "For God so loved"
    assert states[-1].preview == "Psalm 23:1"


@pytest.mark.asyncio
async def test_speaks_reference_when_text_missing() -> None:
    speech = FakeSpeech()
    engine = PresentationEngine(unlocked_gate(), speech=speech)

    await engine.present(ReadRequest(reference="Psalm 23:1"))

    assert speech.spoken == ["Psalm 23:1"]
    assert engine.state.current_text == "Psalm 23:1"


@pytest.mark.asyncio
async def test_waits_for_unlock_then_resumes() -> None:
    speech = FakeSpeech()
    audio = FakeAudio()
    engine = PresentationEngine(UnlockGate(), audio=audio, speech=speech)

    task = asyncio.create_task(engine.present(ReadRequest(reference="John 3:16", text="t")))
    await asyncio.sleep(0)

    assert engine.phase is PresentationPhase.UNLOCK_WAIT
    assert engine.state.unlock_prompt_visible is True
    assert engine.state.current_reference == "John 3:16"
    assert speech.spoken == []

    await engine.unlock()
    await asyncio.wait_for(task, timeout=1)

    assert speech.spoken == ["t"]
    assert audio.primed is True
    assert engine.state.unlock_prompt_visible is False


@pytest.mark.asyncio
async def test_plays_clip_until_it_finishes() -> None:
    audio = FakeAudio()
    speech = FakeSpeech()
    engine = PresentationEngine(unlocked_gate(), audio=audio, speech=speech)

    task = asyncio.create_task(
        engine.present(ReadRequest(reference="John 3:16", audio_url="https://cdn/a.mp3"))
    )
    await asyncio.sleep(0)
    assert audio.started == ["https://cdn/a.mp3"]
    assert not task.done()

    audio.finished.set()
    await asyncio.wait_for(task, timeout=1)

    assert speech.spoken == []


@pytest.mark.asyncio
async def test_clip_start_failure_finishes_item() -> None:
    speech = FakeSpeech()
    sleep = RecordingSleep()
    engine = PresentationEngine(
        unlocked_gate(), audio=FakeAudio(fail=True), speech=speech, sleep=sleep
    )

    await asyncio.wait_for(
        engine.present(ReadRequest(reference="John 3:16", audio_url="https://cdn/bad.ogg")),
        timeout=1,
    )

    assert speech.spoken == []
    assert sleep.calls == []
    assert engine.phase is PresentationPhase.DONE


@pytest.mark.asyncio
async def test_clip_without_audio_output_is_spoken() -> None:
    speech = FakeSpeech()
    engine = PresentationEngine(unlocked_gate(), speech=speech)

    await engine.present(ReadRequest(reference="John 3:16", audio_url="https://cdn/a.mp3"))

    assert speech.spoken == ["John 3:16"]


@pytest.mark.asyncio
async def test_speech_watchdog_bounds_hung_utterance() -> None:
    speech = FakeSpeech(hang=True)
    engine = PresentationEngine(unlocked_gate(), speech=speech, watchdog_seconds=0.05)

    await asyncio.wait_for(engine.present(ReadRequest(reference="John 3:16")), timeout=1)

    # once before speaking, once when the watchdog fires
    assert speech.cancels == 2
    assert engine.phase is PresentationPhase.DONE


@pytest.mark.asyncio
async def test_speech_failure_pauses_for_fallback() -> None:
    sleep = RecordingSleep()
    engine = PresentationEngine(
        unlocked_gate(), speech=FakeSpeech(fail=True), fallback_seconds=4, sleep=sleep
    )

    await engine.present(ReadRequest(reference="John 3:16"))

    assert sleep.calls == [4]


@pytest.mark.asyncio
async def test_no_speech_engine_pauses_for_fallback() -> None:
    sleep = RecordingSleep()
    engine = PresentationEngine(unlocked_gate(), fallback_seconds=4, sleep=sleep)

    await engine.present(ReadRequest(reference="John 3:16"))

    assert sleep.calls == [4]


@pytest.mark.asyncio
async def test_display_errors_do_not_stop_presentation() -> None:
    def broken_display(state: DisplayState) -> None:
        raise RuntimeError("terminal gone")

    speech = FakeSpeech()
    engine = PresentationEngine(unlocked_gate(), speech=speech, display=broken_display)

    await engine.present(ReadRequest(reference="John 3:16"))

    assert speech.spoken == ["John 3:16"]


def test_prompt_shown_once_while_locked() -> None:
    states: list[DisplayState] = []
    engine = PresentationEngine(UnlockGate(), display=states.append)

    engine.prompt_unlock_if_needed()
    engine.prompt_unlock_if_needed()

    assert [s.unlock_prompt_visible for s in states] == [True]
