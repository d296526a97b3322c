"""Local key-value store (one file per key, fcntl.flock + atomic write)."""

import fcntl
import os
import re
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger()

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore:
    """String-keyed store of string values, durable until overwritten.

    Args:
        directory: Directory holding one ``<key>.json`` file per key.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8", errors="replace") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            value = f.read()
            fcntl.flock(f, fcntl.LOCK_UN)
        return value

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.directory, delete=False, suffix=".tmp", encoding="utf-8"
        ) as tmp:
            tmp.write(value)
        os.replace(tmp.name, path)
        logger.debug("store_write", key=key, size=len(value))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)
