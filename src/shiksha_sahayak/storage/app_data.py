"""Profile and stats persistence on top of the local key-value store."""

import json

import structlog
from pydantic import ValidationError

from ..models.profile import UserProfile, UserStats
from .kv_store import JsonFileStore

logger = structlog.get_logger()

PROFILE_KEY = "shiksha_user"
STATS_KEY = "shiksha_stats"


class StorageReadError(Exception):
    """A stored record could not be parsed. Always recovered with defaults."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Unreadable record {key!r}: {reason}")
        self.key = key
        self.reason = reason


def default_profile() -> UserProfile:
    return UserProfile()


def default_stats() -> UserStats:
    return UserStats()


class AppDataStore:
    """Reads and writes the two application records.

    Args:
        store: Key-value store holding the JSON blobs.
    """

    def __init__(self, store: JsonFileStore):
        self.store = store

    def _read(self, key: str, model: type, default):
        raw = self.store.get(key)
        if raw is None:
            return default()
        try:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise StorageReadError(key, f"invalid JSON: {e.msg}") from e
            try:
                return model.model_validate(data)
            except ValidationError as e:
                raise StorageReadError(key, f"schema mismatch ({e.error_count()} errors)") from e
        except StorageReadError as e:
            logger.warning("stored_record_unreadable", key=e.key, reason=e.reason)
            return default()

    def load(self) -> tuple[UserProfile, UserStats]:
        """Load profile and stats, substituting defaults for absent or bad records."""
        profile = self._read(PROFILE_KEY, UserProfile, default_profile)
        stats = self._read(STATS_KEY, UserStats, default_stats)
        return profile, stats

    def save(self, profile: UserProfile, stats: UserStats) -> None:
        """Persist both records (two independent writes)."""
        self.store.set(PROFILE_KEY, profile.model_dump_json())
        self.store.set(STATS_KEY, stats.model_dump_json(by_alias=True))
