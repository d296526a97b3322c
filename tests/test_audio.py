"""Tests for audio encoding utilities."""

import base64

import numpy as np

from shiksha_sahayak.audio.encoder import pcm16_to_base64


def _decode(encoded: str) -> np.ndarray:
    return np.frombuffer(base64.b64decode(encoded), dtype="<i2")


class TestEncoder:
    def test_silence(self):
        """Test encoding silence."""
        silence = np.zeros(1000, dtype=np.float32)
        decoded = _decode(pcm16_to_base64(silence))
        assert len(decoded) == 1000
        assert not decoded.any()

    def test_boundaries(self):
        """Test that values at boundaries encode correctly."""
        audio = np.array([1.0, -1.0, 0.0], dtype=np.float32)
        decoded = _decode(pcm16_to_base64(audio))
        assert decoded.tolist() == [32767, -32767, 0]

    def test_out_of_range_is_clipped(self):
        audio = np.array([3.5, -2.0], dtype=np.float32)
        decoded = _decode(pcm16_to_base64(audio))
        assert decoded.tolist() == [32767, -32767]

    def test_two_bytes_per_sample(self):
        audio = np.zeros(2400, dtype=np.float32)
        assert len(base64.b64decode(pcm16_to_base64(audio))) == 4800

    def test_base64_is_string(self):
        """Test that encoding produces a string."""
        audio = np.zeros(100, dtype=np.float32)
        result = pcm16_to_base64(audio)
        assert isinstance(result, str)
