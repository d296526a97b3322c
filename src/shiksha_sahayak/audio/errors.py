"""Audio device failures, importable without the PortAudio library."""


class AudioDeviceError(Exception):
    """The input device could not be opened (missing or access denied)."""
