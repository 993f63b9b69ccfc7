"""
Configuration for the ZUGFeRD reader CLI and API.

All settings can be overridden via environment variables with the prefix
'ZUGFERD_' or a local .env file. Example: ZUGFERD_LOG_LEVEL=debug
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    """

    model_config = SettingsConfigDict(
        env_prefix="ZUGFERD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    service_name: str = Field(
        default="zugferd-reader",
        description="Service identifier reported by the API",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024,
        gt=0,
        description="Largest upload accepted by the API, in bytes",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


def get_settings() -> Settings:
    """
    Factory function to get a settings instance.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    Configure root logging with the configured level.
    """
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
