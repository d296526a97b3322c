"""Microphone recognizer streaming to the OpenAI realtime transcription API."""

import asyncio
from typing import Any

import structlog
import websockets

from shiksha_sahayak.audio.encoder import pcm16_to_base64
from shiksha_sahayak.audio.errors import AudioDeviceError
from shiksha_sahayak.config import Settings
from shiksha_sahayak.realtime.client import RealtimeClient
from shiksha_sahayak.realtime.events import (
    CONNECTION_LOST,
    ERROR,
    TRANSCRIPTION_COMPLETED,
    TRANSCRIPTION_DELTA,
    TRANSCRIPTION_FAILED,
    transcription_session_update_event,
)
from shiksha_sahayak.speech.capture import RecognitionSink, RecognizerFactory, TranscriptSegment
from shiksha_sahayak.speech.errors import (
    AUTHENTICATION,
    CONFIGURATION,
    NETWORK,
    NOT_ALLOWED,
    CaptureError,
)

logger = structlog.get_logger()

REJECTED_KEY_STATUSES = (401, 403)


class RealtimeRecognizer:
    """Streams microphone chunks and reports interim and final segments.

    Args:
        sink: Receiver of results, errors and the end of the session.
        client: Unconnected realtime client.
        capture: Unstarted AudioCapture.
        model: Transcription model.
        language: ISO language hint.
    """

    def __init__(
        self,
        sink: RecognitionSink,
        client: RealtimeClient,
        capture,
        model: str,
        language: str | None = None,
    ):
        self._sink = sink
        self._client = client
        self._capture = capture
        self._model = model
        self._language = language
        self._segments: dict[str, TranscriptSegment] = {}
        self._tasks: list[asyncio.Task] = []
        self._active = False

    async def start(self) -> None:
        self._client.on(TRANSCRIPTION_DELTA, self._on_delta)
        self._client.on(TRANSCRIPTION_COMPLETED, self._on_completed)
        self._client.on(TRANSCRIPTION_FAILED, self._on_failed)
        self._client.on(ERROR, self._on_failed)
        self._client.on(CONNECTION_LOST, self._on_connection_lost)

        try:
            await self._client.connect(
                transcription_session_update_event(self._model, self._language)
            )
        except websockets.exceptions.InvalidStatus as e:
            status = e.response.status_code
            code = AUTHENTICATION if status in REJECTED_KEY_STATUSES else NETWORK
            raise CaptureError(code, f"handshake rejected with HTTP {status}") from e
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise CaptureError(NETWORK, str(e)) from e

        try:
            self._capture.start()
        except AudioDeviceError as e:
            await self._client.disconnect()
            raise CaptureError(NOT_ALLOWED, str(e)) from e

        self._active = True
        self._tasks = [
            asyncio.create_task(self._audio_send_loop()),
            asyncio.create_task(self._client.receive_loop()),
        ]

    async def stop(self) -> None:
        if await self._teardown():
            await self._sink.handle_end()

    async def abort(self) -> None:
        await self._teardown()

    async def _teardown(self) -> bool:
        if not self._active:
            return False
        self._active = False
        self._capture.stop()
        current = asyncio.current_task()
        others = [t for t in self._tasks if t is not current]
        for task in others:
            task.cancel()
        await asyncio.gather(*others, return_exceptions=True)
        self._tasks.clear()
        await self._client.disconnect()
        return True

    async def _audio_send_loop(self) -> None:
        try:
            async for chunk in self._capture.chunks():
                await self._client.send_audio(pcm16_to_base64(chunk))
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("audio_send_loop_error")

    def _joined(self, item_id: str, text: str) -> str:
        """Prefix a space when another segment precedes this one."""
        text = text.lstrip()
        earlier = [k for k in self._segments if k != item_id]
        return f" {text}" if earlier and text else text

    async def _on_delta(self, event: dict[str, Any]) -> None:
        item_id = event.get("item_id", "")
        previous = self._segments.get(item_id)
        text = (previous.text if previous else "") + event.get("delta", "")
        self._segments[item_id] = TranscriptSegment(self._joined(item_id, text), False)
        await self._sink.handle_results(list(self._segments.values()))

    async def _on_completed(self, event: dict[str, Any]) -> None:
        item_id = event.get("item_id", "")
        transcript = event.get("transcript", "").strip()
        self._segments[item_id] = TranscriptSegment(self._joined(item_id, transcript), True)
        await self._sink.handle_results(list(self._segments.values()))

    async def _on_failed(self, event: dict[str, Any]) -> None:
        logger.warning("transcription_failed", error=event.get("error"))
        await self._sink.handle_error(event.get("type", ERROR))

    async def _on_connection_lost(self, event: dict[str, Any]) -> None:
        await self._sink.handle_error(NETWORK)


def build_recognizer_factory(settings: Settings) -> RecognizerFactory | None:
    """Return a factory for microphone recognizers, or None if unsupported here.

    Without an API key every recognizer fails with a configuration error
    before anything is opened.
    """
    api_key = (settings.openai_api_key or "").strip()
    if not api_key:

        def unconfigured(sink: RecognitionSink) -> RealtimeRecognizer:
            raise CaptureError(CONFIGURATION, "API key missing")

        return unconfigured

    try:
        from shiksha_sahayak.audio.capture import AudioCapture
    except OSError:
        logger.warning("speech_capture_unsupported", reason="PortAudio library not found")
        return None

    def factory(sink: RecognitionSink) -> RealtimeRecognizer:
        return RealtimeRecognizer(
            sink,
            client=RealtimeClient(api_key=api_key),
            capture=AudioCapture(
                sample_rate=settings.audio_sample_rate,
                channels=settings.audio_channels,
                chunk_size=settings.audio_chunk_size,
                device=settings.audio_input_device,
            ),
            model=settings.transcription_model,
            language=settings.speech_language,
        )

    return factory
