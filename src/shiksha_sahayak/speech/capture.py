"""Speech-to-text capture session appended to the overlay's input field."""

from collections.abc import Callable
from enum import StrEnum
from typing import NamedTuple, Protocol

import structlog

from shiksha_sahayak.overlay.notices import NoticeBoard
from shiksha_sahayak.speech.errors import NO_SPEECH, UNSUPPORTED, CaptureError

logger = structlog.get_logger()


class CaptureState(StrEnum):
    IDLE = "idle"
    LISTENING = "listening"


class TranscriptSegment(NamedTuple):
    text: str
    is_final: bool


class RecognitionSink(Protocol):
    """Receives events from a running recognizer."""

    async def handle_results(self, segments: list[TranscriptSegment]) -> None: ...

    async def handle_error(self, code: str) -> None: ...

    async def handle_end(self) -> None: ...


class Recognizer(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def abort(self) -> None: ...


RecognizerFactory = Callable[[RecognitionSink], Recognizer]


def compose_input(base_text: str, segments: list[TranscriptSegment]) -> str:
    """Append the session transcript (finals, then interims) to the prior input."""
    final = "".join(s.text for s in segments if s.is_final)
    interim = "".join(s.text for s in segments if not s.is_final)
    separator = " " if base_text and not base_text[-1].isspace() else ""
    return base_text + separator + final + interim


class _SessionSink:
    """Routes recognizer events to the capture, dropping those of stale sessions."""

    def __init__(self, capture: "SpeechCapture", token: int):
        self._capture = capture
        self._token = token

    async def handle_results(self, segments: list[TranscriptSegment]) -> None:
        if self._capture._is_current(self._token):
            self._capture._apply_results(segments)

    async def handle_error(self, code: str) -> None:
        if self._capture._is_current(self._token):
            await self._capture._fail(code)

    async def handle_end(self) -> None:
        if self._capture._is_current(self._token):
            self._capture._detach()


class SpeechCapture:
    """Toggled speech capture with at most one active recognizer.

    Args:
        factory: Builds a recognizer bound to a sink; None when speech input
            is not available in this environment.
        notices: Board receiving failure notices.
        on_input: Called with the full input-field text on every result.
        notice_seconds: How long failure notices stay visible.
    """

    def __init__(
        self,
        factory: RecognizerFactory | None,
        notices: NoticeBoard,
        on_input: Callable[[str], None],
        notice_seconds: float = 4.0,
    ):
        self._factory = factory
        self._notices = notices
        self._on_input = on_input
        self._notice_seconds = notice_seconds
        self._recognizer: Recognizer | None = None
        self._token = 0
        self._base_text = ""
        self._closed = False
        self.state = CaptureState.IDLE

    @property
    def is_listening(self) -> bool:
        return self.state == CaptureState.LISTENING

    def _is_current(self, token: int) -> bool:
        return self._recognizer is not None and token == self._token

    def _detach(self) -> Recognizer | None:
        recognizer = self._recognizer
        self._recognizer = None
        self._token += 1
        self.state = CaptureState.IDLE
        return recognizer

    def _apply_results(self, segments: list[TranscriptSegment]) -> None:
        self._on_input(compose_input(self._base_text, segments))

    def _report(self, error: CaptureError) -> None:
        logger.warning("speech_capture_error", code=error.code)
        self._notices.post(error.user_message, self._notice_seconds)

    async def _fail(self, code: str) -> None:
        if code == NO_SPEECH:
            return
        recognizer = self._detach()
        self._report(CaptureError(code))
        if recognizer is not None:
            await recognizer.abort()

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self, base_text: str = "") -> None:
        """Begin capturing; any previous session is aborted first.

        Does nothing once the capture has been closed.
        """
        if self._closed:
            return
        await self.abort()
        if self._factory is None:
            self._report(CaptureError(UNSUPPORTED))
            return

        self._base_text = base_text
        self._token += 1
        try:
            recognizer = self._factory(_SessionSink(self, self._token))
        except CaptureError as e:
            self._report(e)
            return
        self._recognizer = recognizer
        self.state = CaptureState.LISTENING
        try:
            await recognizer.start()
        except CaptureError as e:
            if self._recognizer is recognizer:
                self._detach()
            self._report(e)
            return
        logger.info("speech_capture_started")

    async def stop(self) -> None:
        """Stop capturing. Calling it while idle does nothing."""
        recognizer = self._detach() if self._recognizer is not None else None
        if recognizer is not None:
            await recognizer.stop()
            logger.info("speech_capture_stopped")

    async def abort(self) -> None:
        recognizer = self._detach() if self._recognizer is not None else None
        if recognizer is not None:
            await recognizer.abort()
            logger.info("speech_capture_aborted")

    async def close(self) -> None:
        """Abort any session and refuse further starts."""
        self._closed = True
        await self.abort()

    async def toggle(self, base_text: str = "") -> None:
        if self.is_listening:
            await self.stop()
        else:
            await self.start(base_text)
