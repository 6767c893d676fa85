"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from telephony.dtmf import MediaProfile


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CALLFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    log_level: str = Field(default="INFO")

    # Scenario defaults
    default_from_user: str = Field(
        default="sipp",
        description="Caller identity used in From/Contact when a scenario does not set one.",
    )
    default_digit_delay: float = Field(
        default=0.25,
        gt=0.0,
        description="Seconds of silence following each DTMF digit.",
    )

    # Output
    output_dir: Path = Field(default=Path("."))
    scenario_extension: str = Field(default="xml")
    media_extension: str = Field(default="pcap")

    # Media capture
    packet_interval_ms: int = Field(
        default=20,
        ge=10,
        le=100,
        description="Packetization interval for PCMU and telephone-event packets.",
    )
    dtmf_volume: int = Field(
        default=10,
        ge=0,
        le=63,
        description="Telephone-event volume field (dBm0 below zero, per RFC 4733).",
    )

    def media_profile(self) -> MediaProfile:
        return MediaProfile(ptime_ms=self.packet_interval_ms, dtmf_volume=self.dtmf_volume)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
