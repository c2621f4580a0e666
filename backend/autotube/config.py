"""Configuration management with YAML and environment variable support."""

from pathlib import Path
from typing import ClassVar, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source that loads configuration from config.yaml."""

    yaml_path = Path("config.yaml")

    def get_field_value(self, field, field_name: str):
        # Not used with __call__
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        if not self.yaml_path.exists():
            return {}

        with open(self.yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class LLMConfig(BaseModel):
    """Script generation model settings.

    script_model routes to a provider by prefix: "ollama/..." goes to
    Ollama, anything else to Vertex AI.
    """

    script_model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    max_retries: int = 3


class GoogleCloudConfig(BaseModel):
    """Google Cloud configuration for Vertex AI models."""

    project_id: Optional[str] = None
    location: str = "us-central1"


class OllamaConfig(BaseModel):
    """Ollama endpoint. api_key is only needed for cloud deployments."""

    endpoint: str = "http://localhost:11434"
    api_key: Optional[str] = None


class TTSConfig(BaseModel):
    """OpenAI-compatible speech synthesis endpoint."""

    endpoint: str = "https://api.openai.com/v1/audio/speech"
    api_key: Optional[str] = None
    model: str = "tts-1"
    voices: dict[str, str] = Field(
        default_factory=lambda: {
            "informative": "alloy",
            "playful": "nova",
            "dramatic": "onyx",
        }
    )
    timeout_seconds: float = 120.0
    max_retries: int = 3


class RenderConfig(BaseModel):
    """ffmpeg rendering parameters."""

    width: int = 1080
    height: int = 1920
    fps: int = 30
    font_file: Optional[Path] = None
    font_size: int = 64
    backgrounds: dict[str, str] = Field(
        default_factory=lambda: {
            "informative": "0x1e1b4b",
            "playful": "0x7c2d12",
            "dramatic": "0x0f172a",
        }
    )
    video_codec: str = "libx264"
    audio_codec: str = "aac"


class PublishConfig(BaseModel):
    """YouTube Data API credentials.

    Leaving any credential unset makes publishing a soft-skip.
    """

    enabled: bool = True
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    category_id: str = "28"
    timeout_seconds: float = 600.0
    max_retries: int = 3


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    words_per_minute: int = 150
    duration_tolerance: float = 0.25
    min_beats: int = 3
    max_beats: int = 20


class StorageConfig(BaseModel):
    """Artifact directory and job store backend."""

    tmp_dir: Path = Path("tmp")
    job_store: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///autotube.db"

    @field_validator("tmp_dir", mode="before")
    @classmethod
    def convert_tmp_dir_to_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Keyword arguments passed to Settings(...)
    2. Environment variables (prefix: AUTOTUBE_, delimiter: __)
    3. .env file
    4. YAML file (config.yaml)
    5. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="AUTOTUBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    google_cloud: GoogleCloudConfig = Field(default_factory=GoogleCloudConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )


# Singleton instance
settings = Settings()
