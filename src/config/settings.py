"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    status_rate_limit_per_minute: int = Field(default=10, ge=1, description="Requests per client IP per minute on GET /.")

    # Database (CRM store)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/receptionist.db",
        description="SQLAlchemy connection string.",
    )
    auto_create_db_schema: bool = Field(
        default=True,
        description="If true, creates tables automatically on startup (useful for local/dev).",
    )

    # Realtime conversational backend
    openai_api_key: str | None = Field(default=None)
    realtime_url: str = Field(default="wss://api.openai.com/v1/realtime")
    realtime_model: str = Field(default="gpt-4o-realtime-preview-2024-12-17")
    realtime_voice: str = Field(default="echo")
    realtime_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    transcription_model: str = Field(default="whisper-1")
    audio_format: str = Field(default="g711_ulaw", description="Codec for both directions.")
    vad_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    vad_prefix_padding_ms: int = Field(default=200)
    vad_silence_duration_ms: int = Field(default=400)
    backend_connect_timeout_seconds: float = Field(default=10.0)

    # Session bridge policy
    max_reconnect_attempts: int = Field(default=2, ge=0)
    reconnect_delay_seconds: float = Field(default=0.5, ge=0.0)
    transcript_max_chars: int = Field(default=2000, ge=0)

    # Agent persona (configuration input only)
    agent_name: str = Field(default="Jade")
    company_name: str = Field(default="Petrona Realty")
    greeting_instruction: str = Field(
        default="A caller just picked up. Greet them warmly and briefly.",
    )
    fallback_instructions: str = Field(
        default=(
            "You are Jade, a property consultant at Petrona Realty in Connecticut. "
            "Be warm, natural, and helpful. Help callers with property inquiries."
        ),
        description="Used when the full system prompt cannot be rendered.",
    )

    # Scheduling
    business_timezone: str = Field(default="America/New_York")

    # Calendar bridge
    calendar_endpoint: str | None = Field(
        default=None,
        description="Optional HTTP endpoint that creates calendar events for scheduled visits.",
    )
    calendar_api_key: str | None = Field(default=None)
    calendar_id: str | None = Field(default=None)

    # Twilio / public surface
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL used to build the media stream URL (e.g. https://<ngrok>.ngrok-free.app).",
    )
    twilio_say_voice: str = Field(default="Polly.Joanna")
    voicemail_max_length: int = Field(default=120)
    office_phone: str = Field(default="+1 475 471 1996")

    # Reference data (properties, FAQ, local info)
    reference_refresh_seconds: float = Field(default=300.0, gt=0.0)

    # Shutdown
    shutdown_timeout_seconds: float = Field(default=10.0, gt=0.0)

    data_dir: Path = Field(default=Path("./data"))

    @field_validator("data_dir")
    @classmethod
    def ensure_data_dir(cls, value: Path) -> Path:
        value.mkdir(parents=True, exist_ok=True)
        return value

    @property
    def realtime_endpoint(self) -> str:
        return f"{self.realtime_url.rstrip('/')}?model={self.realtime_model}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
