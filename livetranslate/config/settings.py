"""Application Settings - Environment-based configuration.

Uses Pydantic Settings for validation and type coercion.

Provider credentials are optional at startup: a missing key is reported by
``/api/health`` and surfaces as a connection or pipeline error on first use.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from livetranslate.config.constants import RELAY


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API bind host")
    api_port: int = Field(default=3000, ge=1, le=65535, description="API port")
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment name"
    )

    # Transcription (AssemblyAI Universal Streaming)
    transcription_engine: Literal["assemblyai", "mock"] = Field(
        default="assemblyai", description="Upstream transcription link"
    )
    assemblyai_api_key: str | None = Field(
        default=None, description="AssemblyAI API key"
    )
    assemblyai_streaming_url: str = Field(
        default=RELAY.STREAMING_URL, description="Streaming endpoint URL"
    )
    assemblyai_speech_model: str = Field(
        default=RELAY.SPEECH_MODEL, description="Streaming speech model"
    )

    # OpenAI (translation + synthesis)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_base_url: str | None = Field(
        default=None, description="Override OpenAI API base URL"
    )
    translation_engine: Literal["openai", "mock"] = Field(
        default="openai", description="Translation backend"
    )
    translation_model: str = Field(
        default=RELAY.TRANSLATION_MODEL, description="Chat model used for translation"
    )
    tts_engine: Literal["openai", "mock"] = Field(
        default="openai", description="Speech synthesis backend"
    )
    tts_model: str = Field(default=RELAY.TTS_MODEL, description="Speech model")
    tts_format: Literal["mp3", "opus", "aac", "flac", "wav", "pcm"] = Field(
        default=RELAY.TTS_FORMAT, description="Synthesized audio format"
    )
    provider_timeout_s: float = Field(
        default=30.0, gt=0, le=300, description="Per-call timeout for providers"
    )

    # Pipeline
    pipeline_serialize: bool = Field(
        default=False,
        description="Run at most one translate/synthesize pipeline per session at a time",
    )

    # Static client assets (optional)
    static_dir: str | None = Field(
        default=None, description="Directory of browser assets served at /"
    )

    # Observability
    metrics_enabled: bool = Field(default=True, description="Enable Prometheus metrics")

    @property
    def assemblyai_configured(self) -> bool:
        """Whether an AssemblyAI key is present."""
        return bool(self.assemblyai_api_key)

    @property
    def openai_configured(self) -> bool:
        """Whether an OpenAI key is present."""
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
