"""PCM16 encoding of microphone chunks for the realtime transcription socket."""

import base64

import numpy as np


def pcm16_to_base64(audio: np.ndarray) -> str:
    """Convert float32 numpy audio to base64-encoded little-endian PCM16.

    Samples outside [-1.0, 1.0] are clipped before quantization.
    """
    clipped = np.clip(audio, -1.0, 1.0)
    pcm16 = (clipped * 32767).astype("<i2")
    return base64.b64encode(pcm16.tobytes()).decode("ascii")
