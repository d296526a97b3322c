"""Tests for realtime transcription events and client dispatch."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from websockets.asyncio.server import serve

from shiksha_sahayak.realtime.client import RealtimeClient
from shiksha_sahayak.realtime.events import (
    CONNECTION_LOST,
    TRANSCRIPTION_COMPLETED,
    TRANSCRIPTION_DELTA,
    input_audio_buffer_append_event,
    transcription_session_update_event,
)


class TestEventBuilders:
    def test_transcription_session_update(self):
        event = transcription_session_update_event("gpt-4o-transcribe", "hi")
        assert event["type"] == "transcription_session.update"
        session = event["session"]
        assert session["input_audio_format"] == "pcm16"
        assert session["input_audio_transcription"] == {
            "model": "gpt-4o-transcribe",
            "language": "hi",
        }
        assert session["turn_detection"]["type"] == "server_vad"

    def test_language_omitted_when_unset(self):
        event = transcription_session_update_event("gpt-4o-transcribe")
        assert "language" not in event["session"]["input_audio_transcription"]

    def test_audio_buffer_append(self):
        event = input_audio_buffer_append_event("dGVzdA==")
        assert event["type"] == "input_audio_buffer.append"
        assert event["audio"] == "dGVzdA=="


class TestDispatch:
    async def test_handlers_only_for_their_type(self):
        client = RealtimeClient(api_key="sk-test")
        delta = AsyncMock()
        completed = AsyncMock()
        client.on(TRANSCRIPTION_DELTA, delta)
        client.on(TRANSCRIPTION_COMPLETED, completed)

        event = {"type": TRANSCRIPTION_DELTA, "item_id": "a", "delta": "Hello"}
        await client._emit(event)

        delta.assert_awaited_once_with(event)
        completed.assert_not_awaited()

    async def test_failing_handler_does_not_stop_others(self):
        client = RealtimeClient(api_key="sk-test")
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        client.on(CONNECTION_LOST, broken)
        client.on(CONNECTION_LOST, healthy)

        await client._emit({"type": CONNECTION_LOST})

        healthy.assert_awaited_once()

    async def test_receive_loop_requires_connection(self):
        with pytest.raises(RuntimeError):
            await RealtimeClient(api_key="sk-test").receive_loop()


class TestServerClose:
    """Runs the client against a local websockets server."""

    async def _run(self, handler, client_side=None):
        received = []
        lost = AsyncMock()
        async with serve(handler, "127.0.0.1", 0) as server:
            port = next(iter(server.sockets)).getsockname()[1]
            client = RealtimeClient(api_key="sk-test", url=f"ws://127.0.0.1:{port}")
            client.on(CONNECTION_LOST, lost)
            client.on(TRANSCRIPTION_COMPLETED, AsyncMock(side_effect=received.append))
            await client.connect(transcription_session_update_event("gpt-4o-transcribe"))
            if client_side is not None:
                await client_side(client)
            await asyncio.wait_for(client.receive_loop(), timeout=5)
        return lost, received

    async def test_clean_close_reports_connection_lost(self):
        async def handler(ws):
            await ws.recv()
            await ws.close(1000)

        lost, _ = await self._run(handler)
        lost.assert_awaited_once_with({"type": CONNECTION_LOST})

    async def test_abnormal_close_reports_connection_lost(self):
        async def handler(ws):
            await ws.recv()
            await ws.close(1011, "server error")

        lost, _ = await self._run(handler)
        lost.assert_awaited_once()

    async def test_events_delivered_before_close(self):
        async def handler(ws):
            session = json.loads(await ws.recv())
            assert session["type"] == "transcription_session.update"
            await ws.send("not json")
            await ws.send(json.dumps({"type": TRANSCRIPTION_COMPLETED, "item_id": "a", "transcript": "Hi"}))
            await ws.close(1000)

        lost, received = await self._run(handler)
        assert [e["transcript"] for e in received] == ["Hi"]
        lost.assert_awaited_once()

    async def test_client_disconnect_is_not_reported(self):
        async def handler(ws):
            async for _ in ws:
                pass

        async def hang_up(client):
            ws = client._ws
            await client.disconnect()
            client._ws = ws

        lost, _ = await self._run(handler, client_side=hang_up)
        lost.assert_not_awaited()
