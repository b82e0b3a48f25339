"""Neutral JSON adapter for user-defined platforms."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from unibot.components.buttons import render_alisa_buttons
from unibot.platforms.base import PlatformAdapter
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType, State

STATE_NAMESPACE = "state"


class UserAppRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_id: str
    text: str = ""
    message_id: int | str = 0
    payload: Any = None
    state: dict[str, Any] | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class UserAppAdapter(PlatformAdapter):
    """Speaks a small platform-neutral envelope.

    Subclass it (or return another adapter from the ``provide_adapter`` hook)
    to bridge a platform unibot does not ship.
    """

    name = PlatformType.USER_APP.value

    def normalize(self, raw: Any) -> CanonicalTurn:
        content = self.validate(UserAppRequest, self.decode(raw))
        turn = self.new_turn(content)
        turn.user_id = content.user_id
        turn.user_command = content.text.lower().strip()
        turn.original_user_command = content.text
        turn.message_id = content.message_id
        turn.payload = content.payload
        turn.user_meta = content.meta
        if content.state is not None:
            turn.state_payload = content.state
            turn.state_namespace = STATE_NAMESPACE
        return turn

    async def render(self, turn: CanonicalTurn) -> Payload:
        if turn.sounds:
            await self.augment_speech(turn, use_standard=False)
        result: dict[str, Any] = {
            "text": turn.reply_text,
            "speech": turn.reply_speech,
            "end_session": turn.is_session_end,
            "buttons": render_alisa_buttons(turn.buttons) if turn.screen_available else [],
        }
        state = turn.state_for_response()
        if state is not None:
            result[STATE_NAMESPACE] = state
        self.check_deadline(turn)
        return result

    def is_local_storage_capable(self, turn: CanonicalTurn) -> bool:
        return turn.state_payload is not None

    def load_local_state(self, turn: CanonicalTurn) -> State | None:
        return turn.state_payload
