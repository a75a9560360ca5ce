# transcript_gateway/config.py
"""Gateway settings loaded from environment variables (prefix TRANSCRIPT_GATEWAY_)."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123 Safari/537.36"
)


class GatewaySettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPT_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Audio transcription
    audio_transcription_enabled: bool = True
    whisper_model: str = "base"
    whisper_device: Optional[str] = None  # None: cuda when available, else cpu

    # yt-dlp / network
    cookies_file: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    socket_timeout: int = 30
    metadata_clients: List[str] = ["android", "ios", "web"]


@lru_cache(maxsize=1)
def get_settings() -> GatewaySettings:
    return GatewaySettings()
