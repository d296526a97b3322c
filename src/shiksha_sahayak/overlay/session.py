"""Assistant overlay: chat transcript, visualization, image edits and voice input."""

import time
from collections.abc import Callable
from enum import StrEnum

import structlog

from shiksha_sahayak.assistant.client import AssistantClient
from shiksha_sahayak.assistant.errors import AssistantError
from shiksha_sahayak.assistant.prompts import greeting
from shiksha_sahayak.models.chat import ChatMessage, Role
from shiksha_sahayak.models.profile import UserProfile
from shiksha_sahayak.overlay.image_edit import ImageEditor
from shiksha_sahayak.overlay.notices import NoticeBoard
from shiksha_sahayak.speech.capture import RecognizerFactory, SpeechCapture

logger = structlog.get_logger()

VISUALIZE_FAILED_NOTICE = "Could not generate image. Try again."
VISUAL_LANGUAGE = "English"


class OverlayMode(StrEnum):
    CHAT = "chat"
    IMAGE_EDIT = "image_edit"


class MessageStatus(StrEnum):
    GENERATING_IMAGE = "generating_image"


class OverlaySession:
    """One opening of the assistant overlay.

    The transcript lives only as long as the session. After ``close()``
    completions of in-flight calls are discarded.

    Args:
        profile: Profile snapshot used as context for every request.
        assistant: External assistant client.
        recognizer_factory: Speech recognizer factory (None if unsupported).
        speech_notice_seconds: Display time of speech failure notices.
        image_notice_seconds: Display time of image failure notices.
    """

    def __init__(
        self,
        profile: UserProfile,
        assistant: AssistantClient,
        recognizer_factory: RecognizerFactory | None = None,
        speech_notice_seconds: float = 4.0,
        image_notice_seconds: float = 3.0,
        notices: NoticeBoard | None = None,
    ):
        self.profile = profile
        self.assistant = assistant
        self.notices = notices or NoticeBoard()
        self.mode = OverlayMode.CHAT
        self.input_text = ""
        self.closed = False
        self._pending_sends = 0
        self._last_id = 0
        self._image_notice_seconds = image_notice_seconds
        self._input_listeners: list[Callable[[str], None]] = []
        # Presentation state kept apart from the messages themselves
        self._status: dict[str, MessageStatus] = {}
        self.messages: list[ChatMessage] = [
            ChatMessage(id=self._next_id(), role=Role.ASSISTANT, text=greeting(profile))
        ]
        self.image_editor = ImageEditor(assistant, self.notices, image_notice_seconds)
        self.speech = SpeechCapture(
            recognizer_factory,
            self.notices,
            on_input=self._set_input,
            notice_seconds=speech_notice_seconds,
        )

    def _next_id(self) -> str:
        self._last_id = max(time.time_ns(), self._last_id + 1)
        return str(self._last_id)

    def subscribe_input(self, listener: Callable[[str], None]) -> None:
        """Be told whenever voice input rewrites the input field."""
        self._input_listeners.append(listener)

    def unsubscribe_input(self, listener: Callable[[str], None]) -> None:
        if listener in self._input_listeners:
            self._input_listeners.remove(listener)

    def _set_input(self, text: str) -> None:
        self.input_text = text
        for listener in list(self._input_listeners):
            listener(text)

    def _append(self, role: Role, text: str | None = None) -> ChatMessage:
        message = ChatMessage(id=self._next_id(), role=role, text=text)
        self.messages.append(message)
        return message

    def _replace(self, message: ChatMessage) -> None:
        for i, existing in enumerate(self.messages):
            if existing.id == message.id:
                self.messages[i] = message
                return

    def get_message(self, message_id: str) -> ChatMessage | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    @property
    def is_sending(self) -> bool:
        return self._pending_sends > 0

    def is_generating_image(self, message_id: str) -> bool:
        return self._status.get(message_id) == MessageStatus.GENERATING_IMAGE

    def set_mode(self, mode: OverlayMode) -> None:
        self.mode = OverlayMode(mode)

    def render_transcript(self) -> list[dict]:
        """Messages merged with their transient status for display."""
        rendered = []
        for message in self.messages:
            item = message.model_dump()
            item["is_generating_image"] = self.is_generating_image(message.id)
            item["can_visualize"] = (
                message.role == Role.ASSISTANT
                and message.image is None
                and not item["is_generating_image"]
            )
            rendered.append(item)
        return rendered

    async def send_message(self, text: str) -> str | None:
        """Run one chat turn and return the assistant's reply text.

        Failures of the assistant service become a fixed reply in the
        transcript. Returns None when the text is blank.
        """
        if not text.strip():
            return None

        history = list(self.messages)
        self._append(Role.USER, text)
        self.input_text = ""
        self._pending_sends += 1
        try:
            reply = await self.assistant.generate_text(text, self.profile, history)
        except AssistantError as e:
            logger.warning("chat_turn_failed", error_type=type(e).__name__)
            reply = e.user_message
        finally:
            self._pending_sends -= 1

        if self.closed:
            logger.info("overlay_closed_reply_dropped")
            return reply
        self._append(Role.ASSISTANT, reply)
        return reply

    async def visualize(self, message_id: str) -> ChatMessage | None:
        """Attach a generated illustration to an assistant message.

        Returns the (possibly unchanged) message, or None for an unknown id.
        """
        message = self.get_message(message_id)
        if message is None:
            return None
        if (
            message.role != Role.ASSISTANT
            or message.image is not None
            or self.is_generating_image(message_id)
        ):
            return message

        self._status[message_id] = MessageStatus.GENERATING_IMAGE
        try:
            image = await self.assistant.generate_classroom_image(message.text or "", VISUAL_LANGUAGE)
        except AssistantError as e:
            logger.warning("visualize_failed", error_type=type(e).__name__)
            image = None
        finally:
            self._status.pop(message_id, None)

        if self.closed:
            return message
        if not image:
            self.notices.post(VISUALIZE_FAILED_NOTICE, self._image_notice_seconds)
            return message

        updated = message.with_image(image)
        self._replace(updated)
        logger.info("message_visualized", message_id=message_id)
        return updated

    async def edit_image(self, instruction: str) -> str | None:
        result = await self.image_editor.edit(instruction)
        if result is not None:
            self.input_text = ""
        return result

    async def toggle_listening(self) -> None:
        if self.closed:
            return
        await self.speech.toggle(self.input_text)

    async def close(self) -> None:
        """Tear the session down; later completions are ignored."""
        self.closed = True
        await self.speech.close()
        logger.info("overlay_closed", messages=len(self.messages))
