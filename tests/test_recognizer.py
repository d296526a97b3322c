"""Tests for the realtime transcription recognizer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from websockets.asyncio.server import serve
from websockets.datastructures import Headers
from websockets.exceptions import InvalidStatus
from websockets.http11 import Response

from shiksha_sahayak.audio.errors import AudioDeviceError
from shiksha_sahayak.config import Settings
from shiksha_sahayak.overlay.notices import NoticeBoard
from shiksha_sahayak.realtime.client import RealtimeClient
from shiksha_sahayak.realtime.events import (
    CONNECTION_LOST,
    TRANSCRIPTION_COMPLETED,
    TRANSCRIPTION_DELTA,
)
from shiksha_sahayak.speech.capture import SpeechCapture, TranscriptSegment
from shiksha_sahayak.speech.errors import (
    AUTHENTICATION,
    CAPTURE_MESSAGES,
    CONFIGURATION,
    NETWORK,
    NOT_ALLOWED,
    CaptureError,
)
from shiksha_sahayak.speech.recognizer import RealtimeRecognizer, build_recognizer_factory


class FakeRealtimeClient:
    def __init__(self, connect_error: Exception | None = None):
        self.connect_error = connect_error
        self.handlers: dict[str, list] = {}
        self.session_event = None
        self.sent_audio: list[str] = []
        self.disconnect = AsyncMock()

    def on(self, event_type, handler):
        self.handlers.setdefault(event_type, []).append(handler)

    async def connect(self, session_event):
        if self.connect_error:
            raise self.connect_error
        self.session_event = session_event

    async def send_audio(self, audio_base64):
        self.sent_audio.append(audio_base64)

    async def receive_loop(self):
        await asyncio.Event().wait()

    async def emit(self, event):
        for handler in self.handlers.get(event["type"], []):
            await handler(event)


class FakeAudioCapture:
    def __init__(self, start_error: Exception | None = None):
        self.start_error = start_error
        self.running = False

    def start(self):
        if self.start_error:
            raise self.start_error
        self.running = True

    def stop(self):
        self.running = False

    async def chunks(self):
        yield np.zeros(10, dtype=np.float32)


@pytest.fixture
def sink():
    mock = MagicMock()
    mock.handle_results = AsyncMock()
    mock.handle_error = AsyncMock()
    mock.handle_end = AsyncMock()
    return mock


def _recognizer(sink, client=None, capture=None):
    return RealtimeRecognizer(
        sink,
        client=client or FakeRealtimeClient(),
        capture=capture or FakeAudioCapture(),
        model="gpt-4o-transcribe",
        language="en",
    )


class TestStartStop:
    async def test_start_configures_session(self, sink):
        client = FakeRealtimeClient()
        capture = FakeAudioCapture()
        recognizer = _recognizer(sink, client, capture)
        await recognizer.start()
        assert client.session_event["type"] == "transcription_session.update"
        assert capture.running
        await recognizer.abort()

    async def test_audio_chunks_are_streamed(self, sink):
        client = FakeRealtimeClient()
        recognizer = _recognizer(sink, client)
        await recognizer.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert len(client.sent_audio) == 1
        await recognizer.abort()

    async def test_stop_reports_end(self, sink):
        client = FakeRealtimeClient()
        capture = FakeAudioCapture()
        recognizer = _recognizer(sink, client, capture)
        await recognizer.start()
        await recognizer.stop()
        assert not capture.running
        client.disconnect.assert_awaited_once()
        sink.handle_end.assert_awaited_once()

    async def test_abort_is_silent(self, sink):
        recognizer = _recognizer(sink)
        await recognizer.start()
        await recognizer.abort()
        await recognizer.stop()
        sink.handle_end.assert_not_called()

    async def test_connection_failure(self, sink):
        client = FakeRealtimeClient(connect_error=OSError("unreachable"))
        with pytest.raises(CaptureError) as exc_info:
            await _recognizer(sink, client).start()
        assert exc_info.value.code == NETWORK

    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_key_is_authentication_error(self, sink, status):
        rejected = InvalidStatus(Response(status, "Unauthorized", Headers(), b""))
        client = FakeRealtimeClient(connect_error=rejected)
        with pytest.raises(CaptureError) as exc_info:
            await _recognizer(sink, client).start()
        assert exc_info.value.code == AUTHENTICATION

    async def test_server_error_status_is_network_error(self, sink):
        unavailable = InvalidStatus(Response(503, "Service Unavailable", Headers(), b""))
        client = FakeRealtimeClient(connect_error=unavailable)
        with pytest.raises(CaptureError) as exc_info:
            await _recognizer(sink, client).start()
        assert exc_info.value.code == NETWORK

    async def test_microphone_denied(self, sink):
        client = FakeRealtimeClient()
        capture = FakeAudioCapture(start_error=AudioDeviceError("denied"))
        with pytest.raises(CaptureError) as exc_info:
            await _recognizer(sink, client, capture).start()
        assert exc_info.value.code == NOT_ALLOWED
        client.disconnect.assert_awaited_once()


class TestTranscription:
    async def test_interim_then_final(self, sink):
        client = FakeRealtimeClient()
        recognizer = _recognizer(sink, client)
        await recognizer.start()

        await client.emit({"type": TRANSCRIPTION_DELTA, "item_id": "a", "delta": "Hello"})
        await client.emit({"type": TRANSCRIPTION_DELTA, "item_id": "a", "delta": " there"})
        assert sink.handle_results.call_args.args[0] == [TranscriptSegment("Hello there", False)]

        await client.emit(
            {"type": TRANSCRIPTION_COMPLETED, "item_id": "a", "transcript": "Hello there."}
        )
        assert sink.handle_results.call_args.args[0] == [TranscriptSegment("Hello there.", True)]
        await recognizer.abort()

    async def test_later_segments_are_space_joined(self, sink):
        client = FakeRealtimeClient()
        recognizer = _recognizer(sink, client)
        await recognizer.start()

        await client.emit({"type": TRANSCRIPTION_COMPLETED, "item_id": "a", "transcript": "One."})
        await client.emit({"type": TRANSCRIPTION_DELTA, "item_id": "b", "delta": "Two"})
        assert sink.handle_results.call_args.args[0] == [
            TranscriptSegment("One.", True),
            TranscriptSegment(" Two", False),
        ]
        await recognizer.abort()

    async def test_connection_lost_is_network_error(self, sink):
        client = FakeRealtimeClient()
        recognizer = _recognizer(sink, client)
        await recognizer.start()
        await client.emit({"type": CONNECTION_LOST})
        sink.handle_error.assert_awaited_once_with(NETWORK)
        await recognizer.abort()


class TestFactory:
    @pytest.mark.parametrize("api_key", [None, "", "   "])
    def test_missing_key_is_configuration_error(self, sink, api_key):
        factory = build_recognizer_factory(Settings(openai_api_key=api_key))
        with pytest.raises(CaptureError) as exc_info:
            factory(sink)
        assert exc_info.value.code == CONFIGURATION


class TestServerClosesSession:
    async def test_clean_close_stops_capture_with_network_notice(self):
        async def handler(ws):
            await ws.recv()
            await ws.close(1000)

        notices = NoticeBoard()
        async with serve(handler, "127.0.0.1", 0) as server:
            port = next(iter(server.sockets)).getsockname()[1]

            def factory(sink):
                return RealtimeRecognizer(
                    sink,
                    client=RealtimeClient(api_key="sk-test", url=f"ws://127.0.0.1:{port}"),
                    capture=FakeAudioCapture(),
                    model="gpt-4o-transcribe",
                )

            capture = SpeechCapture(factory, notices, on_input=lambda text: None)
            await capture.start("")
            for _ in range(200):
                if not capture.is_listening:
                    break
                await asyncio.sleep(0.01)

        assert not capture.is_listening
        assert notices.current == CAPTURE_MESSAGES[NETWORK]
