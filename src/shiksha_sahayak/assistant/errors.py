"""Failure categories of the external assistant service."""


class AssistantError(Exception):
    """Base class; ``user_message`` is the text shown in place of a reply."""

    user_message = (
        "I'm having trouble connecting to the Assistant. "
        "Please check your internet connection and try again."
    )


class ConfigurationError(AssistantError):
    """The API key is missing. Detected locally, never sent over the wire."""

    user_message = (
        "⚠️ Configuration Error: API Key is missing. "
        "Please add 'OPENAI_API_KEY' to your environment and restart."
    )


class AuthenticationError(AssistantError):
    """The service rejected the API key."""

    user_message = (
        "⚠️ Authentication Error: The provided API Key is invalid or expired. "
        "Please check your configuration."
    )


class ConnectivityError(AssistantError):
    """The service could not be reached or failed mid-request."""


class EmptyResponseError(AssistantError):
    """The service answered without usable content."""

    user_message = (
        "I understood your question, but I'm having trouble formulating an "
        "answer right now. Please try asking again."
    )
