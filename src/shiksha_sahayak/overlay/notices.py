"""Transient user-facing notices that expire after a display duration."""

import time
from collections.abc import Callable

import structlog

logger = structlog.get_logger()

NoticeListener = Callable[[str], None]


class NoticeBoard:
    """Single-slot notice; a newer notice replaces the current one.

    Args:
        clock: Monotonic time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._message: str | None = None
        self._expires_at = 0.0
        self._listeners: list[NoticeListener] = []

    def subscribe(self, listener: NoticeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: NoticeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def post(self, message: str, seconds: float) -> None:
        self._message = message
        self._expires_at = self._clock() + seconds
        logger.info("notice_posted", message=message, seconds=seconds)
        for listener in list(self._listeners):
            listener(message)

    @property
    def current(self) -> str | None:
        if self._message is not None and self._clock() >= self._expires_at:
            self._message = None
        return self._message

    def clear(self) -> None:
        self._message = None
