"""Framework-neutral data aliases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from unibot.turn import CanonicalTurn

type Payload = Any
type State = dict[str, Any]


class PlatformType(StrEnum):
    """Platform tags understood by the adapter registry."""

    ALISA = "alisa"
    MARUSIA = "marusia"
    SMART_APP = "smart_app"
    TELEGRAM = "telegram"
    VIBER = "viber"
    VK = "vk"
    USER_APP = "user_application"


@dataclass(frozen=True)
class TurnResult:
    """Result of one complete request/response turn."""

    platform: str
    payload: Payload
    ok: bool = True
    turn: CanonicalTurn | None = None
    errors: list[str] = field(default_factory=list)
