"""Canonical, platform-agnostic representation of one conversational turn."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

from unibot.components.buttons import Buttons
from unibot.components.media import CardItem, Sound


@dataclass
class CanonicalTurn:
    """Mutable record of one request/response cycle.

    Created by ``PlatformAdapter.normalize`` for every inbound request and
    discarded after render. Only ``user_data`` (and ``state_payload`` on
    platforms with native state) outlives the turn.
    """

    platform: str

    # Inbound
    user_command: str = ""
    original_user_command: str = ""
    payload: Any = None
    user_id: str | None = None
    user_token: str | None = None
    session_id: str | None = None
    message_id: int | str | None = None
    user_meta: dict[str, Any] = field(default_factory=dict)
    nlu: dict[str, Any] = field(default_factory=dict)
    user_events: dict[str, Any] = field(default_factory=dict)
    session: dict[str, Any] = field(default_factory=dict)
    raw_request: Any = None

    # Outbound
    reply_text: str = ""
    reply_speech: str | None = None
    buttons: Buttons = field(default_factory=Buttons)
    cards: list[CardItem] = field(default_factory=list)
    sounds: list[Sound] = field(default_factory=list)
    use_standard_sounds: bool = True
    emotion: str | None = None
    appeal: Literal["official", "no_official"] | None = None

    # Session lifecycle
    is_session_end: bool = False
    requires_auth: bool = False
    auth_succeeded: bool | None = None
    identity_authorized: bool = False
    screen_available: bool = True
    should_send: bool = True
    send_rating: bool = False
    health_check: bool = False

    # State
    state_payload: Any = None
    state_namespace: str | None = None
    user_data: dict[str, Any] | None = None
    local_storage: bool = False

    # Intents
    intent_name: str | None = None
    previous_intent_name: str | None = None

    started_at_monotonic: float = field(default_factory=time.monotonic)
    errors: list[str] = field(default_factory=list)

    @property
    def is_first_turn(self) -> bool:
        return self.message_id is not None and str(self.message_id) == "0"

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at_monotonic

    def record_error(self, error: Exception | str) -> None:
        self.errors.append(str(error))

    def state_for_response(self) -> Any:
        """State to embed in the response: user data when local storage is on, else the inbound state."""

        if self.local_storage and self.user_data:
            return self.user_data
        return self.state_payload
