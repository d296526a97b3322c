"""Chat transcript models for the assistant overlay."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Role(StrEnum):
    """Author of a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single turn in the overlay transcript.

    Messages are immutable; attaching a generated image produces a new
    message with the same id.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    text: str | None = None
    image: str | None = None  # base64 encoded bitmap

    def with_image(self, image: str) -> "ChatMessage":
        return self.model_copy(update={"image": image})
