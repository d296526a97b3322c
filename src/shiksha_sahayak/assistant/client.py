"""OpenAI-backed assistant: chat replies, classroom illustrations and image edits."""

import base64

import openai
import structlog
from openai import AsyncOpenAI

from shiksha_sahayak.assistant.errors import (
    AssistantError,
    AuthenticationError,
    ConfigurationError,
    ConnectivityError,
    EmptyResponseError,
)
from shiksha_sahayak.assistant.prompts import (
    IMAGE_EDIT_INSTRUCTION,
    build_chat_prompt,
    build_visual_prompt_request,
)
from shiksha_sahayak.models.chat import ChatMessage
from shiksha_sahayak.models.profile import UserProfile

logger = structlog.get_logger()


def _translate_error(error: openai.OpenAIError) -> AssistantError:
    """Map an SDK failure onto the assistant's failure categories."""
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AuthenticationError(str(error))
    return ConnectivityError(str(error))


def _image_upload(image_bytes: bytes) -> tuple[str, bytes, str]:
    if image_bytes.startswith(b"\xff\xd8"):
        return "source.jpg", image_bytes, "image/jpeg"
    if image_bytes.startswith(b"RIFF") and image_bytes[8:12] == b"WEBP":
        return "source.webp", image_bytes, "image/webp"
    return "source.png", image_bytes, "image/png"


def _first_image(response) -> str | None:
    for item in response.data or []:
        if item.b64_json:
            return item.b64_json
    return None


class AssistantClient:
    """Single-attempt calls to the generative AI service.

    The API key is checked before every call; a missing or blank key raises
    ConfigurationError without touching the network.

    Args:
        api_key: OpenAI API key (may be None).
        text_model: Model for chat replies and prompt refinement.
        image_model: Model for image generation and editing.
    """

    def __init__(
        self,
        api_key: str | None,
        text_model: str = "gpt-4o-mini",
        image_model: str = "gpt-image-1",
    ):
        self.api_key = api_key
        self.text_model = text_model
        self.image_model = image_model
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key missing")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    async def _complete(self, prompt: str) -> str:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.text_model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.OpenAIError as e:
            logger.exception("assistant_text_failed", model=self.text_model)
            raise _translate_error(e) from e

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            logger.warning("assistant_text_empty", model=self.text_model)
            raise EmptyResponseError("empty completion")
        return text.strip()

    async def generate_text(
        self,
        question: str,
        profile: UserProfile,
        history: list[ChatMessage] | None = None,
    ) -> str:
        """Answer a teacher's question in the context of their profile and chat.

        Raises:
            AssistantError: On any failure category.
        """
        prompt = build_chat_prompt(question, profile, history or [])
        logger.info("assistant_text_request", question=question[:80], history=len(history or []))
        return await self._complete(prompt)

    async def refine_visual_prompt(self, context_text: str, language: str = "English") -> str:
        """Distill advice text into a concrete illustration prompt."""
        return await self._complete(build_visual_prompt_request(context_text, language))

    async def generate_image(self, prompt: str) -> str | None:
        """Generate an image; returns base64 data or None when none came back."""
        client = self._get_client()
        try:
            response = await client.images.generate(
                model=self.image_model,
                prompt=prompt,
                n=1,
            )
        except openai.OpenAIError as e:
            logger.exception("assistant_image_generation_failed", model=self.image_model)
            raise _translate_error(e) from e
        return _first_image(response)

    async def generate_classroom_image(self, context_text: str, language: str = "English") -> str | None:
        """Two-stage illustration: refine a visual prompt, then render it."""
        refined = await self.refine_visual_prompt(context_text, language)
        logger.info("visual_prompt_refined", prompt=refined[:120])
        return await self.generate_image(refined)

    async def edit_image(self, image_base64: str, instruction: str) -> str | None:
        """Edit a base64 image according to a textual instruction.

        Returns:
            Base64 data of the edited image, or None if the service returned none.
        """
        client = self._get_client()
        image_bytes = base64.b64decode(image_base64)
        try:
            response = await client.images.edit(
                model=self.image_model,
                image=_image_upload(image_bytes),
                prompt=IMAGE_EDIT_INSTRUCTION.format(instruction=instruction),
            )
        except openai.OpenAIError as e:
            logger.exception("assistant_image_edit_failed", model=self.image_model)
            raise _translate_error(e) from e
        return _first_image(response)
