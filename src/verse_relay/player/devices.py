"""Sound-device audio output for the terminal player."""

from __future__ import annotations

import asyncio
import io
import logging

import httpx
import numpy as np
import sounddevice as sd
import soundfile as sf

from .outputs import AudioOutput, AudioStartError

logger = logging.getLogger(__name__)


class SoundDeviceAudioOutput(AudioOutput):
    """Downloads a clip, decodes it with soundfile and plays it on the default device.

    Decoding and the PortAudio calls block, so they run in worker threads to
    keep the relay connection responsive.
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        volume: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._volume = volume
        self._client = client

    async def _download(self, url: str) -> bytes:
        if self._client is not None:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.content

        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    def _play(self, data: np.ndarray, sample_rate: int) -> None:
        sd.stop()
        sd.play(data * self._volume, sample_rate)

    async def start(self, url: str) -> None:
        try:
            content = await self._download(url)
            data, sample_rate = await asyncio.to_thread(
                sf.read, io.BytesIO(content), dtype="float32"
            )
            await asyncio.to_thread(self._play, data, sample_rate)
        except (httpx.HTTPError, RuntimeError, sf.LibsndfileError, sd.PortAudioError) as exc:
            raise AudioStartError(str(exc)) from exc

    async def wait_finished(self) -> None:
        await asyncio.to_thread(sd.wait)

    async def prime(self) -> None:
        silence = np.zeros((441, 1), dtype="float32")
        await asyncio.to_thread(self._play, silence, 44100)
        await asyncio.to_thread(sd.stop)


__all__ = ["SoundDeviceAudioOutput"]
