"""Configuration management for unibot."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from unibot.logging_utils import configure_logging
from unibot.types import PlatformType


class Settings(BaseSettings):
    """Application settings, immutable once built."""

    model_config = SettingsConfigDict(
        env_prefix="UNIBOT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Platform
    platform: PlatformType = Field(default=PlatformType.ALISA, description="Platform tag served by default")

    # Built-in intents
    welcome_text: str | list[str] = Field(default="Текст приветствия", description="Welcome reply or list of variants")
    help_text: str | list[str] = Field(default="Текст помощи", description="Help reply or list of variants")

    # Identity and state
    use_authorized_identity: bool = Field(
        default=False, description="Alisa: prefer the authorized Yandex account id as user id"
    )
    is_local_storage: bool = Field(
        default=False, description="Keep user data in platform-native state instead of the storage collaborator"
    )

    # Platform credentials
    vk_confirmation_token: str | None = Field(default=None, description="VK callback confirmation string")
    viber_sender: str | None = Field(default=None, description="Viber sender name")
    viber_api_version: int = Field(default=2, description="Viber minimal api version")
    telegram_token: str | None = Field(default=None, description="Telegram bot token")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "console"] = Field(default="default", description="Log output profile")


def get_settings(**overrides: Any) -> Settings:
    """Get application settings.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Settings instance
    """
    settings = Settings(**overrides)

    configure_logging(profile=settings.log_profile, level=settings.log_level)

    return settings
