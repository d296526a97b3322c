"""Image-edit round trip of the assistant overlay."""

import base64
import binascii
from enum import StrEnum

import structlog

from shiksha_sahayak.assistant.client import AssistantClient
from shiksha_sahayak.assistant.errors import AssistantError
from shiksha_sahayak.overlay.notices import NoticeBoard

logger = structlog.get_logger()

EDIT_SUGGESTIONS = ["Remove background", "Add a retro filter", "Make it brighter", "Add a whiteboard"]

EDIT_EMPTY_NOTICE = "Could not edit image. Please try again."
EDIT_FAILED_NOTICE = "Error processing image."


class ImageEditState(StrEnum):
    NO_IMAGE = "no_image"
    IMAGE_SELECTED = "image_selected"
    EDIT_PENDING = "edit_pending"
    EDITED = "edited"


def strip_data_url(data: str) -> str:
    """Return the base64 payload of a data URL (or the input if already bare).

    Raises:
        ValueError: If the payload is not valid base64.
    """
    payload = data.split(",", 1)[1] if data.startswith("data:") else data
    payload = payload.strip()
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Image is not valid base64 data") from e
    if not payload:
        raise ValueError("Image is empty")
    return payload


class ImageEditor:
    """Holds the selected image and at most one edited variant.

    Every edit is applied to the original, which is never modified.

    Args:
        assistant: Client performing the edit call.
        notices: Board receiving failure notices.
        notice_seconds: How long failure notices stay visible.
    """

    def __init__(self, assistant: AssistantClient, notices: NoticeBoard, notice_seconds: float = 3.0):
        self._assistant = assistant
        self._notices = notices
        self._notice_seconds = notice_seconds
        self.original: str | None = None
        self.edited: str | None = None
        self.showing_original = False
        self.pending = False

    @property
    def state(self) -> ImageEditState:
        if self.original is None:
            return ImageEditState.NO_IMAGE
        if self.pending:
            return ImageEditState.EDIT_PENDING
        if self.edited is not None:
            return ImageEditState.EDITED
        return ImageEditState.IMAGE_SELECTED

    @property
    def displayed_image(self) -> str | None:
        if self.edited is not None and not self.showing_original:
            return self.edited
        return self.original

    @property
    def suggestions(self) -> list[str]:
        return EDIT_SUGGESTIONS if self.state == ImageEditState.IMAGE_SELECTED else []

    def select_image(self, data: str) -> None:
        """Choose a new source image; discards any previous edit."""
        self.original = strip_data_url(data)
        self.edited = None
        self.showing_original = False

    def reset(self) -> None:
        self.original = None
        self.edited = None
        self.showing_original = False

    def show_original(self) -> None:
        self.showing_original = True

    def show_edited(self) -> None:
        self.showing_original = False

    def toggle(self) -> None:
        """Flip between the original and the edited image, if there is one."""
        if self.edited is None:
            return
        if self.showing_original:
            self.show_edited()
        else:
            self.show_original()

    async def edit(self, instruction: str) -> str | None:
        """Run one edit call; returns the edited image or None on failure."""
        if self.original is None or not instruction.strip() or self.pending:
            return None

        source = self.original
        self.pending = True
        try:
            result = await self._assistant.edit_image(source, instruction.strip())
        except AssistantError as e:
            logger.warning("image_edit_failed", error_type=type(e).__name__)
            self._notices.post(EDIT_FAILED_NOTICE, self._notice_seconds)
            return None
        finally:
            self.pending = False

        if self.original != source:
            # Image was replaced or cleared while the edit was running
            return None
        if not result:
            self._notices.post(EDIT_EMPTY_NOTICE, self._notice_seconds)
            return None
        self.edited = result
        self.show_edited()
        logger.info("image_edited", instruction=instruction[:80])
        return result
