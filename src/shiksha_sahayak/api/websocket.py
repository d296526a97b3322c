"""Browser WebSocket handler for voice input in the assistant overlay."""

import asyncio

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from shiksha_sahayak.app.controller import ViewController
from shiksha_sahayak.overlay.session import OverlaySession

logger = structlog.get_logger()


async def _send_loop(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    """Forward queued events to the browser."""
    try:
        while True:
            data = await outbox.get()
            try:
                await websocket.send_json(data)
            except Exception:
                logger.warning("browser_send_failed")
    except asyncio.CancelledError:
        pass


async def handle_browser_websocket(websocket: WebSocket, controller: ViewController) -> None:
    """Drive speech capture for the open overlay (opening it if needed).

    The overlay is looked up again for every message, so a socket outlives
    a close and reopen of the overlay and follows the new session.

    Client messages: ``start_listening``, ``stop_listening`` and
    ``toggle_listening``, each optionally carrying the current input ``text``.
    Server messages: ``listening``, ``input`` and ``notice``.
    """
    await websocket.accept()
    outbox: asyncio.Queue[dict] = asyncio.Queue()
    overlay: OverlaySession | None = None

    def on_input(text: str) -> None:
        outbox.put_nowait({"type": "input", "text": text})

    def on_notice(message: str) -> None:
        outbox.put_nowait({
            "type": "notice",
            "message": message,
            "listening": overlay is not None and overlay.speech.is_listening,
        })

    def detach() -> None:
        if overlay is not None:
            overlay.unsubscribe_input(on_input)
            overlay.notices.unsubscribe(on_notice)

    def bind() -> OverlaySession:
        nonlocal overlay
        current = controller.open_overlay()
        if current is not overlay:
            detach()
            current.subscribe_input(on_input)
            current.notices.subscribe(on_notice)
            overlay = current
            logger.debug("voice_socket_bound")
        return current

    bind()
    sender = asyncio.create_task(_send_loop(websocket, outbox))

    try:
        while True:
            data = await websocket.receive_json()
            session = bind()
            msg_type = data.get("type", "")
            if "text" in data:
                session.input_text = str(data["text"])

            if msg_type == "start_listening":
                await session.speech.start(session.input_text)
            elif msg_type == "stop_listening":
                await session.speech.stop()
            elif msg_type == "toggle_listening":
                await session.toggle_listening()
            else:
                logger.warning("unknown_browser_message", type=msg_type)
                continue

            outbox.put_nowait({"type": "listening", "listening": session.speech.is_listening})

    except WebSocketDisconnect:
        logger.info("browser_disconnected")
    except Exception:
        logger.exception("websocket_handler_error")
    finally:
        detach()
        if overlay is not None:
            await overlay.speech.stop()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
