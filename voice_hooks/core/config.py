"""Application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

STATE_DIR = Path.home() / ".voice-hooks"


class Settings(BaseSettings):
    """Global settings, read from the environment, `.env` and `voice_hooks.json`."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_HOOKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        json_file="voice_hooks.json",
        extra="ignore",
    )

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 5111
    cors_origins: list[str] = ["*"]
    public_dir: str = "public"

    # Logs
    log_dir: str = str(STATE_DIR / "logs")
    log_rotate_mb: int = 5
    log_retention_days: int = 7

    # Speech
    tts_command: list[str] = ["say"]
    tts_rate_flag: str = "-r"
    tts_timeout_sec: float = 60.0
    default_speech_rate: int = 150
    min_speech_rate: int = 75
    max_speech_rate: int = 225

    # Waiting for voice input
    wait_timeout_sec: float = 60.0
    wait_max_timeout_sec: float = 600.0
    wait_poll_interval_sec: float = 0.1

    # Live events
    event_buffer_size: int = 256
    sse_heartbeat_sec: float = 15.0

    # Tool gating
    allowlist_path: str = ".claude/settings.local.json"
    audit_log_path: str = str(STATE_DIR / "audit.jsonl")

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
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
