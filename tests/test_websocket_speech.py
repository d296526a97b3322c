"""Tests for the browser voice-input WebSocket."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from shiksha_sahayak.api.routes import router
from shiksha_sahayak.api.websocket import handle_browser_websocket
from shiksha_sahayak.app.controller import ViewController
from shiksha_sahayak.assistant.client import AssistantClient
from shiksha_sahayak.speech.capture import TranscriptSegment
from shiksha_sahayak.storage.app_data import AppDataStore
from shiksha_sahayak.storage.kv_store import JsonFileStore


class EchoRecognizer:
    """Reports a single final segment as soon as it starts."""

    def __init__(self, sink):
        self.sink = sink

    async def start(self):
        await self.sink.handle_results([TranscriptSegment("with leaves", True)])

    async def stop(self):
        await self.sink.handle_end()

    async def abort(self):
        pass


def _app(controller: ViewController) -> FastAPI:
    app = FastAPI()

    @app.websocket("/ws")
    async def ws(websocket: WebSocket):
        await handle_browser_websocket(websocket, controller)

    return app


def _controller(tmp_path, factory) -> ViewController:
    c = ViewController(
        AppDataStore(JsonFileStore(tmp_path / "store")),
        MagicMock(spec=AssistantClient),
        recognizer_factory=factory,
    )
    c.initialize()
    return c


class TestBrowserWebSocket:
    def test_toggle_listening_streams_input(self, tmp_path):
        controller = _controller(tmp_path, EchoRecognizer)
        with TestClient(_app(controller)) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "toggle_listening", "text": "Teach counting"})
                assert ws.receive_json() == {"type": "input", "text": "Teach counting with leaves"}
                assert ws.receive_json() == {"type": "listening", "listening": True}

                ws.send_json({"type": "stop_listening"})
                assert ws.receive_json() == {"type": "listening", "listening": False}

        assert controller.overlay.input_text == "Teach counting with leaves"

    def test_unsupported_environment_sends_notice(self, tmp_path):
        controller = _controller(tmp_path, None)
        with TestClient(_app(controller)) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "start_listening"})
                notice = ws.receive_json()
                assert notice["type"] == "notice"
                assert notice["message"] == "Voice input not supported in this environment."
                assert notice["listening"] is False
                assert ws.receive_json() == {"type": "listening", "listening": False}

    @pytest.mark.parametrize("message", [{"type": "bogus"}, {}])
    def test_unknown_messages_ignored(self, tmp_path, message):
        controller = _controller(tmp_path, EchoRecognizer)
        with TestClient(_app(controller)) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json(message)
                ws.send_json({"type": "stop_listening"})
                assert ws.receive_json() == {"type": "listening", "listening": False}

    def test_follows_reopened_overlay(self, tmp_path):
        controller = _controller(tmp_path, EchoRecognizer)
        app = _app(controller)
        app.include_router(router)
        with patch("shiksha_sahayak.api.routes.get_controller", return_value=controller):
            with TestClient(app) as client:
                with client.websocket_connect("/ws") as ws:
                    ws.send_json({"type": "toggle_listening", "text": "Old"})
                    assert ws.receive_json() == {"type": "input", "text": "Old with leaves"}
                    assert ws.receive_json() == {"type": "listening", "listening": True}
                    first = controller.overlay

                    client.post("/api/overlay/close")
                    client.post("/api/overlay/open")
                    second = controller.overlay

                    ws.send_json({"type": "toggle_listening", "text": "Teach counting"})
                    assert ws.receive_json() == {"type": "input", "text": "Teach counting with leaves"}
                    assert ws.receive_json() == {"type": "listening", "listening": True}

        assert second is not first
        assert first.closed
        assert not first.speech.is_listening
        assert first.input_text == "Old with leaves"
        assert second.input_text == "Teach counting with leaves"
