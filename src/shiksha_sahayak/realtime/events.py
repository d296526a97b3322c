"""Event builders for the OpenAI realtime transcription socket."""

from typing import Any

# Server → client event types consumed by the recognizer
TRANSCRIPTION_DELTA = "conversation.item.input_audio_transcription.delta"
TRANSCRIPTION_COMPLETED = "conversation.item.input_audio_transcription.completed"
TRANSCRIPTION_FAILED = "conversation.item.input_audio_transcription.failed"
ERROR = "error"
# Synthesized locally when the socket drops
CONNECTION_LOST = "connection.lost"


def transcription_session_update_event(
    model: str,
    language: str | None = None,
    input_audio_format: str = "pcm16",
    vad_threshold: float = 0.5,
    vad_silence_duration_ms: int = 700,
) -> dict[str, Any]:
    """Build a transcription_session.update event."""
    transcription: dict[str, Any] = {"model": model}
    if language:
        transcription["language"] = language
    return {
        "type": "transcription_session.update",
        "session": {
            "input_audio_format": input_audio_format,
            "input_audio_transcription": transcription,
            "turn_detection": {
                "type": "server_vad",
                "threshold": vad_threshold,
                "prefix_padding_ms": 300,
                "silence_duration_ms": vad_silence_duration_ms,
            },
        },
    }


def input_audio_buffer_append_event(audio_base64: str) -> dict[str, Any]:
    """Build an input_audio_buffer.append event."""
    return {
        "type": "input_audio_buffer.append",
        "audio": audio_base64,
    }
