"""Dashboard settings: defaults, ``config/settings.yaml``, ``.env`` and environment."""

import functools
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# (yaml section, yaml key) -> settings field
_YAML_FIELDS: dict[tuple[str, str], str] = {
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("audio", "sample_rate"): "audio_sample_rate",
    ("audio", "channels"): "audio_channels",
    ("audio", "chunk_duration_ms"): "audio_chunk_duration_ms",
    ("recording", "duration_seconds"): "recording_duration_seconds",
    ("recording", "tick_interval_seconds"): "tick_interval_seconds",
    ("store", "backend"): "store_backend",
    ("store", "firestore_project"): "firestore_project",
    ("store", "firestore_database"): "firestore_database",
    ("openai", "transcription_model"): "transcription_model",
    ("openai", "evaluation_model"): "evaluation_model",
}


def _find_project_root() -> Path:
    """Walk up from this file to the directory holding pyproject.toml."""
    here = Path(__file__).resolve()
    for candidate in here.parents:
        if (candidate / "pyproject.toml").exists():
            return candidate
    return here.parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Reads the sectioned ``config/settings.yaml`` into flat field names."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        path = _find_project_root() / "config" / "settings.yaml"
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            sections = yaml.safe_load(f) or {}

        values: dict[str, Any] = {}
        for (section, key), field in _YAML_FIELDS.items():
            value = (sections.get(section) or {}).get(key)
            if value is not None:
                values[field] = value
        return values


class Settings(BaseSettings):
    """Runtime settings for the dashboard service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI analysis
    openai_api_key: str = Field(default="", description="OpenAI API key")
    transcription_model: str = Field(default="whisper-1")
    evaluation_model: str = Field(default="gpt-4o-mini")

    # Shared secret for HTTP and WebSocket clients; unset disables the check
    app_secret: str | None = Field(default=None)

    # Microphone capture
    audio_sample_rate: int = Field(default=24000)
    audio_channels: int = Field(default=1)
    audio_chunk_duration_ms: int = Field(default=100)
    audio_input_device: int | None = Field(default=None)

    # Session recording
    recording_duration_seconds: int = Field(default=45 * 60)
    tick_interval_seconds: float = Field(default=1.0)

    # Document store
    store_backend: Literal["local", "firestore"] = Field(default="local")
    firestore_project: str | None = Field(default=None)
    firestore_database: str | None = Field(default=None)

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    project_root: Path = Field(default_factory=_find_project_root)

    def _data_dir(self, name: str) -> Path:
        path = self.project_root / "data" / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def exports_dir(self) -> Path:
        """Where exported session reports are written."""
        return self._data_dir("exports")

    @property
    def store_dir(self) -> Path:
        """Root of the local JSON document store."""
        return self._data_dir("store")

    @property
    def audio_chunk_size(self) -> int:
        """Frames delivered per capture callback."""
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
        """Place the YAML file below environment variables and ``.env``."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings."""
    return Settings()
