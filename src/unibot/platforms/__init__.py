"""Platform adapters and the built-in adapter registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from unibot.errors import UnknownPlatformError
from unibot.platforms.alisa import AlisaAdapter
from unibot.platforms.base import DELIVERED, NOT_FOUND, OutboundRequest, PlatformAdapter, Sender
from unibot.platforms.marusia import MarusiaAdapter
from unibot.platforms.smartapp import SmartAppAdapter
from unibot.platforms.telegram import TelegramAdapter, TelegramBotSender
from unibot.platforms.user_app import UserAppAdapter
from unibot.platforms.viber import ViberAdapter
from unibot.platforms.vk import VkAdapter
from unibot.types import PlatformType

if TYPE_CHECKING:
    from unibot.config import Settings


def adapter_class(platform: str) -> type[PlatformAdapter]:
    try:
        tag = PlatformType(platform)
    except ValueError:
        raise UnknownPlatformError(f"unknown platform: {platform}") from None

    match tag:
        case PlatformType.ALISA:
            return AlisaAdapter
        case PlatformType.MARUSIA:
            return MarusiaAdapter
        case PlatformType.SMART_APP:
            return SmartAppAdapter
        case PlatformType.TELEGRAM:
            return TelegramAdapter
        case PlatformType.VIBER:
            return ViberAdapter
        case PlatformType.VK:
            return VkAdapter
        case PlatformType.USER_APP:
            return UserAppAdapter


def create_adapter(platform: str, settings: Settings, **collaborators: Any) -> PlatformAdapter:
    """Build the built-in adapter for a platform tag.

    ``collaborators`` (``card_renderer``, ``sound_renderer``, ``sender``) are
    passed to the adapter constructor.
    """

    return adapter_class(platform)(settings, **collaborators)


__all__ = [
    "DELIVERED",
    "NOT_FOUND",
    "AlisaAdapter",
    "MarusiaAdapter",
    "OutboundRequest",
    "PlatformAdapter",
    "Sender",
    "SmartAppAdapter",
    "TelegramAdapter",
    "TelegramBotSender",
    "UserAppAdapter",
    "ViberAdapter",
    "VkAdapter",
    "adapter_class",
    "create_adapter",
]
