"""Microphone input via sounddevice, delivered as chunks on the event loop.

Importing this module raises OSError when the PortAudio library is missing.
"""

import asyncio
from collections.abc import AsyncIterator

import numpy as np
import sounddevice as sd
import structlog

from shiksha_sahayak.audio.errors import AudioDeviceError

logger = structlog.get_logger()

OVERFLOW_LOG_EVERY = 50


class AudioCapture:
    """Float32 microphone chunks for one recognition session.

    The PortAudio callback runs on its own thread and hands each block to the
    event loop; ``chunks()`` ends once the capture is stopped.

    Args:
        sample_rate: Audio sample rate in Hz.
        channels: Number of input channels.
        chunk_size: Samples per delivered chunk.
        device: Input device index (None for the system default).
        max_buffered: Chunks held before new ones are dropped.
    """

    def __init__(
        self,
        sample_rate: int = 24000,
        channels: int = 1,
        chunk_size: int = 2400,
        device: int | None = None,
        max_buffered: int = 200,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.device = device
        self._buffer: asyncio.Queue[np.ndarray | None] = asyncio.Queue(maxsize=max_buffered + 1)
        self._max_buffered = max_buffered
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stream: sd.InputStream | None = None
        self._overflows = 0

    @property
    def active(self) -> bool:
        return self._stream is not None

    def _push(self, block: np.ndarray) -> None:
        if self._stream is None:
            return
        if self._buffer.qsize() >= self._max_buffered:
            self._overflows += 1
            if self._overflows % OVERFLOW_LOG_EVERY == 1:
                logger.warning("mic_buffer_full", dropped=self._overflows)
            return
        self._buffer.put_nowait(block)

    def _on_block(self, indata: np.ndarray, frames: int, time_info: object, status: sd.CallbackFlags) -> None:
        if status:
            logger.warning("mic_stream_status", status=str(status))
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._push, indata.reshape(-1).copy())

    def start(self) -> None:
        """Open the default (or configured) input device.

        Raises:
            AudioDeviceError: The device is missing or access was denied.
        """
        if self.active:
            return
        self._loop = asyncio.get_running_loop()
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self.chunk_size,
                device=self.device,
                callback=self._on_block,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            raise AudioDeviceError(str(e)) from e
        self._stream = stream
        logger.info("mic_opened", sample_rate=self.sample_rate, device=self.device)

    def stop(self) -> None:
        """Close the device, discard buffered audio and end ``chunks()``."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()
        while not self._buffer.empty():
            self._buffer.get_nowait()
        self._buffer.put_nowait(None)
        if self._overflows:
            logger.warning("mic_closed_with_drops", dropped=self._overflows)
        self._overflows = 0
        logger.info("mic_closed")

    async def chunks(self) -> AsyncIterator[np.ndarray]:
        while True:
            chunk = await self._buffer.get()
            if chunk is None:
                return
            yield chunk
