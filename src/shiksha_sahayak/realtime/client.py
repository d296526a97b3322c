"""WebSocket connection to the OpenAI realtime transcription endpoint."""

import json
from collections import defaultdict
from collections.abc import Callable, Coroutine
from typing import Any

import structlog
import websockets
from websockets.asyncio.client import ClientConnection

from shiksha_sahayak.realtime.events import (
    CONNECTION_LOST,
    input_audio_buffer_append_event,
)

logger = structlog.get_logger()

REALTIME_API_URL = "wss://api.openai.com/v1/realtime?intent=transcription"

EventHandler = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]


class RealtimeClient:
    """One transcription session over a single socket.

    Handlers are registered per server event type. A close while the
    session is open is emitted once as ``connection.lost``; there is no
    reconnect.

    Args:
        api_key: OpenAI API key.
        url: Realtime endpoint.
    """

    def __init__(self, api_key: str, url: str = REALTIME_API_URL):
        self.api_key = api_key
        self.url = url
        self._ws: ClientConnection | None = None
        self._open = False
        self._handlers: defaultdict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "OpenAI-Beta": "realtime=v1"}

    async def connect(self, session_event: dict[str, Any]) -> None:
        """Open the socket and send the session configuration.

        Raises:
            OSError: The endpoint could not be reached.
            websockets.exceptions.WebSocketException: The handshake was refused.
        """
        self._ws = await websockets.connect(self.url, additional_headers=self._auth_headers())
        self._open = True
        logger.info("transcription_socket_opened")
        await self._send(session_event)

    async def disconnect(self) -> None:
        self._open = False
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
            logger.info("transcription_socket_closed")

    async def send_audio(self, audio_base64: str) -> None:
        await self._send(input_audio_buffer_append_event(audio_base64))

    async def _send(self, event: dict[str, Any]) -> None:
        if self._ws is not None:
            await self._ws.send(json.dumps(event))

    async def receive_loop(self) -> None:
        """Emit server events to handlers until the session ends.

        Any close the client did not initiate, clean or not, is reported as
        ``connection.lost``.
        """
        ws = self._ws
        if ws is None:
            raise RuntimeError("Not connected")
        try:
            async for raw in ws:
                if not self._open:
                    break
                try:
                    event = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("transcription_event_undecodable", size=len(raw))
                    continue
                await self._emit(event)
        except websockets.exceptions.ConnectionClosedError as e:
            logger.debug("transcription_socket_close_error", code=e.rcvd.code if e.rcvd else None)
        if self._open:
            self._open = False
            logger.warning("transcription_socket_lost", code=ws.close_code)
            await self._emit({"type": CONNECTION_LOST})

    async def _emit(self, event: dict[str, Any]) -> None:
        event_type = event.get("type", "")
        for handler in list(self._handlers.get(event_type, ())):
            try:
                await handler(event)
            except Exception:
                logger.exception("transcription_handler_failed", event_type=event_type)
