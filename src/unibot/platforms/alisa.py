"""Yandex Alisa webhook adapter."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from unibot.components.buttons import render_alisa_buttons
from unibot.errors import ParseError
from unibot.platforms.base import PlatformAdapter
from unibot.text import resize
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType, State

VERSION = "1.0"
MAX_TEXT_LENGTH = 1024
PING_COMMAND = "ping"
PONG_REPLY = "pong"


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")


class UtteranceRequest(_Envelope):
    type: str = "SimpleUtterance"
    command: str | None = None
    original_utterance: str | None = None
    payload: Any = None
    nlu: dict[str, Any] | None = None


class SessionUser(_Envelope):
    user_id: str | None = None
    access_token: str | None = None


class SessionApplication(_Envelope):
    application_id: str | None = None


class WebhookSession(_Envelope):
    message_id: int = 0
    session_id: str = ""
    skill_id: str = ""
    user_id: str | None = None
    new: bool = False
    user: SessionUser | None = None
    application: SessionApplication | None = None


class RequestState(_Envelope):
    user: Any = None
    application: Any = None
    session: Any = None


class WebhookRequest(_Envelope):
    version: str = VERSION
    meta: dict[str, Any] = Field(default_factory=dict)
    session: WebhookSession | None = None
    request: UtteranceRequest | None = None
    state: RequestState | None = None
    account_linking_complete_event: Any = None


# Inbound state key -> response key, in priority order.
STATE_NAMESPACES: tuple[tuple[str, str], ...] = (
    ("user", "user_state_update"),
    ("application", "application_state"),
    ("session", "session_state"),
)


def select_state(state: RequestState | None, namespaces: tuple[tuple[str, str], ...]) -> tuple[Any, str | None]:
    """Pick the highest-priority state object present in the request."""

    if state is None:
        return None, None
    for field_name, namespace in namespaces:
        if field_name in state.model_fields_set:
            return getattr(state, field_name), namespace
    return None, None


def apply_utterance(turn: CanonicalTurn, request: UtteranceRequest) -> None:
    """Fill user command fields from an utterance or a button press."""

    command = (request.command or "").strip()
    original = (request.original_utterance or "").strip()
    if request.type != "SimpleUtterance":
        if isinstance(request.payload, str):
            command = original = request.payload
        turn.payload = request.payload
    turn.user_command = command.lower() if request.type == "SimpleUtterance" else command
    turn.original_user_command = original
    if not turn.user_command:
        turn.user_command = turn.original_user_command.lower()


class AlisaAdapter(PlatformAdapter):
    """Adapter for the Yandex Dialogs webhook protocol."""

    name = PlatformType.ALISA.value
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
        self._set_user_id(turn, session)
        turn.session_id = session.session_id
        turn.message_id = session.message_id
        turn.session = {"skill_id": session.skill_id, "new": session.new}
        turn.nlu = content.request.nlu or {}
        turn.user_meta = content.meta
        turn.state_payload, turn.state_namespace = select_state(content.state, STATE_NAMESPACES)
        turn.screen_available = "screen" in (content.meta.get("interfaces") or {})

        if turn.original_user_command == PING_COMMAND:
            logger.debug("alisa.normalize.ping session_id={}", turn.session_id)
            turn.reply_text = PONG_REPLY
            turn.health_check = True
        return turn

    def _set_user_id(self, turn: CanonicalTurn, session: WebhookSession) -> None:
        """Authorized account id, then application id, then anonymous session user id."""

        turn.identity_authorized = False
        if self.settings.use_authorized_identity and session.user is not None and session.user.user_id is not None:
            turn.user_id = session.user.user_id
            turn.user_token = session.user.access_token
            turn.identity_authorized = True
            return
        if session.application is not None and session.application.application_id is not None:
            turn.user_id = session.application.application_id
        else:
            turn.user_id = session.user_id

    async def render(self, turn: CanonicalTurn) -> Payload:
        result: dict[str, Any] = {"version": VERSION}
        if turn.requires_auth and turn.user_token is None:
            result["start_account_linking"] = {}
        else:
            await self.augment_speech(turn)
            result["response"] = await self._response(turn)

        namespace = self.session_state_namespace(turn)
        if (turn.identity_authorized or turn.local_storage) and namespace:
            state = turn.state_for_response()
            if state:
                result[namespace] = state

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
