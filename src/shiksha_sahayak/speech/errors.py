"""Speech capture failure codes and their user-facing messages."""

from shiksha_sahayak.assistant.errors import AuthenticationError, ConfigurationError

NO_SPEECH = "no-speech"
NETWORK = "network"
NOT_ALLOWED = "not-allowed"
UNSUPPORTED = "unsupported"
# Credential failures share the assistant's wording
CONFIGURATION = "configuration"
AUTHENTICATION = "authentication"

CAPTURE_MESSAGES: dict[str, str] = {
    NETWORK: "Network error: Check connection.",
    NOT_ALLOWED: "Microphone denied. Enable permissions.",
    UNSUPPORTED: "Voice input not supported in this environment.",
    CONFIGURATION: ConfigurationError.user_message,
    AUTHENTICATION: AuthenticationError.user_message,
}
DEFAULT_CAPTURE_MESSAGE = "Voice input failed."


class CaptureError(Exception):
    """Speech capture is unavailable, denied or lost its connection."""

    def __init__(self, code: str, detail: str = ""):
        super().__init__(f"{code}: {detail}" if detail else code)
        self.code = code

    @property
    def user_message(self) -> str:
        return CAPTURE_MESSAGES.get(self.code, DEFAULT_CAPTURE_MESSAGE)
