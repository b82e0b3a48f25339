"""Sber SmartApp (SmartMarket) webhook adapter."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from unibot.components.buttons import render_smartapp_buttons
from unibot.errors import ParseError
from unibot.platforms.base import PlatformAdapter
from unibot.text import resize
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType

MAX_BUBBLE_LENGTH = 250

MESSAGE_TO_SKILL = "MESSAGE_TO_SKILL"
CLOSE_APP = "CLOSE_APP"
SERVER_ACTION = "SERVER_ACTION"
RUN_APP = "RUN_APP"
RATING_RESULT = "RATING_RESULT"
ANSWER_TO_USER = "ANSWER_TO_USER"
CALL_RATING = "CALL_RATING"

KNOWN_MESSAGES = frozenset({MESSAGE_TO_SKILL, CLOSE_APP, SERVER_ACTION, RUN_APP, RATING_RESULT})


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")


class Uuid(_Envelope):
    userId: str
    userChannel: str | None = None
    sub: str | None = None


class UserMessage(_Envelope):
    original_text: str = ""
    normalized_text: str = ""
    entities: Any = None
    tokenized_elements_list: Any = None


class Character(_Envelope):
    appeal: str | None = None


class AppInfo(_Envelope):
    applicationId: str | None = None
    projectId: str | None = None


class RequestPayload(_Envelope):
    device: dict[str, Any] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)
    app_info: AppInfo = Field(default_factory=AppInfo)
    projectName: str | None = None
    intent: str | None = None
    character: Character = Field(default_factory=Character)
    message: UserMessage = Field(default_factory=UserMessage)
    server_action: dict[str, Any] | None = None
    status_code: dict[str, Any] | None = None
    rating: dict[str, Any] | None = None


class WebhookRequest(_Envelope):
    messageName: str
    sessionId: str
    messageId: int
    uuid: Uuid
    payload: RequestPayload = Field(default_factory=RequestPayload)


def screen_available(device: dict[str, Any]) -> bool:
    """Read ``capabilities.screen.available``; devices that omit it have a screen."""

    capabilities = device.get("capabilities")
    if not isinstance(capabilities, dict):
        return True
    screen = capabilities.get("screen")
    if not isinstance(screen, dict):
        return True
    return bool(screen.get("available", True))


class SmartAppAdapter(PlatformAdapter):
    """Adapter for the SmartApp API ``messageName``-tagged envelope."""

    name = PlatformType.SMART_APP.value
    response_deadline = 2.8

    def normalize(self, raw: Any) -> CanonicalTurn:
        content = self.validate(WebhookRequest, self.decode(raw))
        if content.messageName not in KNOWN_MESSAGES:
            raise ParseError(self.name, f"unsupported messageName {content.messageName!r}")

        turn = self.new_turn(content)
        payload = content.payload
        turn.message_id = content.messageId
        turn.session_id = content.sessionId
        self._apply_message(turn, content)

        turn.session = {
            "sessionId": content.sessionId,
            "messageId": content.messageId,
            "uuid": content.uuid.model_dump(exclude_none=True),
            "device": payload.device,
            "projectName": payload.projectName,
            "applicationId": payload.app_info.applicationId,
        }
        turn.previous_intent_name = payload.intent
        if payload.character.appeal in ("official", "no_official"):
            turn.appeal = payload.character.appeal
        turn.user_id = content.uuid.userId
        turn.nlu = {
            "entities": payload.message.entities,
            "tokens": payload.message.tokenized_elements_list,
        }
        turn.user_meta = payload.meta

        turn.screen_available = screen_available(payload.device)
        return turn

    def _apply_message(self, turn: CanonicalTurn, content: WebhookRequest) -> None:
        payload = content.payload
        match content.messageName:
            case "MESSAGE_TO_SKILL" | "CLOSE_APP":
                turn.user_command = payload.message.normalized_text.lower().strip()
                turn.original_user_command = payload.message.original_text
            case "SERVER_ACTION" | "RUN_APP":
                turn.payload = (payload.server_action or {}).get("parameters")
                if isinstance(turn.payload, str):
                    turn.user_command = turn.original_user_command = turn.payload
                if content.messageName == RUN_APP:
                    turn.message_id = 0
                    turn.original_user_command = turn.user_command
                    turn.user_command = ""
            case "RATING_RESULT":
                turn.payload = payload.model_dump()
                turn.message_id = 0
                turn.user_events = {
                    "rating": {
                        "status": (payload.status_code or {}).get("code") == 1,
                        "value": (payload.rating or {}).get("estimation"),
                    }
                }
        if not turn.user_command and content.messageName != RUN_APP:
            turn.user_command = turn.original_user_command.lower()

    def _envelope(self, turn: CanonicalTurn, message_name: str) -> dict[str, Any]:
        return {
            "messageName": message_name,
            "sessionId": turn.session.get("sessionId"),
            "messageId": turn.session.get("messageId"),
            "uuid": turn.session.get("uuid"),
        }

    async def render(self, turn: CanonicalTurn) -> Payload:
        result = self._envelope(turn, ANSWER_TO_USER)
        if turn.sounds:
            await self.augment_speech(turn, use_standard=False)
        result["payload"] = await self._payload(turn)
        self.check_deadline(turn)
        return result

    async def render_rating(self, turn: CanonicalTurn) -> Payload:
        result = self._envelope(turn, CALL_RATING)
        result["payload"] = {}
        return result

    async def _payload(self, turn: CanonicalTurn) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "pronounceText": turn.reply_text,
            "pronounceTextType": "application/text",
            "device": turn.session.get("device"),
            "intent": turn.intent_name,
            "projectName": turn.session.get("projectName"),
            "auto_listening": not turn.is_session_end,
            "finished": turn.is_session_end,
        }
        items: list[dict[str, Any]] = []
        if turn.emotion:
            payload["emotion"] = {"emotionId": turn.emotion}
        if turn.reply_text:
            items.append(
                {
                    "bubble": {
                        "text": resize(turn.reply_text, MAX_BUBBLE_LENGTH),
                        "markdown": True,
                        "expand_policy": "auto_expand",
                    }
                }
            )
        if turn.reply_speech:
            payload["pronounceText"] = turn.reply_speech
            payload["pronounceTextType"] = "application/ssml"

        if turn.screen_available:
            card = await self.render_cards(turn)
            if card:
                items.append(card)
            payload["suggestions"] = {"buttons": render_smartapp_buttons(turn.buttons)}
        if turn.is_session_end:
            items.append({"command": {"type": "close_app"}})
        if items:
            payload["items"] = items
        return payload
