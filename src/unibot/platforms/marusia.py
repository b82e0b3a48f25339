"""VK Marusia webhook adapter."""

from __future__ import annotations

from typing import Any

from unibot.components.buttons import render_alisa_buttons
from unibot.errors import ParseError
from unibot.platforms.alisa import WebhookRequest, apply_utterance, select_state
from unibot.platforms.base import PlatformAdapter
from unibot.text import resize
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType, State

VERSION = "1.0"
MAX_TEXT_LENGTH = 1024

STATE_NAMESPACES: tuple[tuple[str, str], ...] = (
    ("user", "user_state_update"),
    ("session", "session_state"),
)


class MarusiaAdapter(PlatformAdapter):
    """Adapter for the Marusia skills webhook protocol.

    The envelope mirrors Alisa's; the response additionally echoes the
    session block and state is only written back from local storage.
    """

    name = PlatformType.MARUSIA.value
    response_deadline = 2.8
    speech_from_text = True

    def normalize(self, raw: Any) -> CanonicalTurn:
        content = self.validate(WebhookRequest, self.decode(raw))
        turn = self.new_turn(content)

        if content.session is None or content.request is None:
            if "account_linking_complete_event" in content.model_fields_set:
                turn.auth_succeeded = True
                turn.user_events = {"auth": {"status": True}}
                return turn
            raise ParseError(self.name, "request has no session and request blocks")

        session = content.session
        apply_utterance(turn, content.request)
        turn.state_payload, turn.state_namespace = select_state(content.state, STATE_NAMESPACES)
        turn.user_id = session.user_id
        turn.session_id = session.session_id
        turn.message_id = session.message_id
        turn.session = {
            "session_id": session.session_id,
            "message_id": session.message_id,
            "user_id": session.user_id,
            "skill_id": session.skill_id,
        }
        turn.nlu = content.request.nlu or {}
        turn.user_meta = content.meta
        turn.screen_available = "screen" in (content.meta.get("interfaces") or {})
        return turn

    async def render(self, turn: CanonicalTurn) -> Payload:
        await self.augment_speech(turn)
        result: dict[str, Any] = {
            "version": VERSION,
            "response": await self._response(turn),
            "session": {
                "session_id": turn.session.get("session_id"),
                "message_id": turn.session.get("message_id"),
                "user_id": turn.session.get("user_id"),
            },
        }
        namespace = self.session_state_namespace(turn)
        if turn.local_storage and turn.user_data and namespace:
            result[namespace] = turn.user_data

        self.check_deadline(turn)
        return result

    async def _response(self, turn: CanonicalTurn) -> dict[str, Any]:
        speech = turn.reply_speech if turn.reply_speech is not None else turn.reply_text
        response: dict[str, Any] = {
            "text": resize(turn.reply_text, MAX_TEXT_LENGTH),
            "tts": resize(speech, MAX_TEXT_LENGTH),
            "end_session": turn.is_session_end,
        }
        if turn.screen_available:
            card = await self.render_cards(turn)
            if card:
                response["card"] = card
            response["buttons"] = render_alisa_buttons(turn.buttons)
        return response

    def is_local_storage_capable(self, turn: CanonicalTurn) -> bool:
        return turn.state_payload is not None

    def load_local_state(self, turn: CanonicalTurn) -> State | None:
        return turn.state_payload
