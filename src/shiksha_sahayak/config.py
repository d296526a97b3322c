"""Settings from config/settings.yaml, .env and the environment (pydantic-settings)."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# (yaml section, yaml key) -> Settings field
YAML_FIELDS: dict[tuple[str, str], str] = {
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("openai", "text_model"): "text_model",
    ("openai", "image_model"): "image_model",
    ("openai", "transcription_model"): "transcription_model",
    ("speech", "language"): "speech_language",
    ("speech", "sample_rate"): "audio_sample_rate",
    ("speech", "channels"): "audio_channels",
    ("speech", "chunk_duration_ms"): "audio_chunk_duration_ms",
    ("speech", "input_device"): "audio_input_device",
    ("notices", "speech_seconds"): "speech_notice_seconds",
    ("notices", "image_seconds"): "image_notice_seconds",
}


def _find_project_root() -> Path:
    """Nearest ancestor of this file that holds pyproject.toml."""
    here = Path(__file__).resolve()
    return next(
        (p for p in here.parents if (p / "pyproject.toml").is_file()),
        here.parents[2],
    )


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Lowest-priority source: the sectioned config/settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        data = _read_yaml(_find_project_root() / "config" / "settings.yaml")
        values: dict[str, Any] = {}
        for (section, key), field in YAML_FIELDS.items():
            value = (data.get(section) or {}).get(key)
            if value is not None:
                values[field] = value
        return values


class Settings(BaseSettings):
    """Runtime configuration.

    Precedence: constructor arguments, environment, ``.env``, settings.yaml.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # A missing key is not fatal; each assistant call reports it instead
    openai_api_key: str | None = Field(default=None)
    text_model: str = "gpt-4o-mini"
    image_model: str = "gpt-image-1"
    transcription_model: str = "gpt-4o-transcribe"

    speech_language: str = "en"
    audio_sample_rate: int = 24000
    audio_channels: int = 1
    audio_chunk_duration_ms: int = 100
    audio_input_device: int | None = None

    speech_notice_seconds: float = 4.0
    image_notice_seconds: float = 3.0

    host: str = "0.0.0.0"
    port: int = 8000

    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def store_dir(self) -> Path:
        """Directory of the local key-value store (created on access)."""
        path = self.project_root / "data" / "store"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def audio_chunk_size(self) -> int:
        return self.audio_sample_rate * self.audio_chunk_duration_ms // 1000

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    return Settings()


def load_persona(persona_name: str = "default") -> dict:
    """Read the ``persona`` mapping of config/personas/<name>.yaml.

    Raises:
        FileNotFoundError: No persona file with that name.
    """
    path = _find_project_root() / "config" / "personas" / f"{persona_name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Persona file not found: {path}")
    return _read_yaml(path).get("persona", {})
