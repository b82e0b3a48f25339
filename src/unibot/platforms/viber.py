"""Viber REST bot adapter."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from unibot.components.buttons import render_viber_keyboard
from unibot.errors import ParseError
from unibot.platforms.base import DELIVERED, OutboundRequest, PlatformAdapter
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType

CONVERSATION_STARTED = "conversation_started"
MESSAGE = "message"


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")


class ViberUser(_Envelope):
    id: str
    name: str | None = None
    avatar: str | None = None
    api_version: int | None = None


class ViberMessage(_Envelope):
    type: str = "text"
    text: str | None = None
    tracking_data: str | None = None


class CallbackRequest(_Envelope):
    event: str
    timestamp: int | None = None
    message_token: int | None = None
    user: ViberUser | None = None
    sender: ViberUser | None = None
    message: ViberMessage | None = None


def split_user_name(name: str | None) -> dict[str, str | None]:
    parts = (name or "").split(" ")
    return {
        "username": parts[0] or None,
        "first_name": parts[1] if len(parts) > 1 and parts[1] else None,
        "last_name": parts[2] if len(parts) > 2 and parts[2] else None,
    }


class ViberAdapter(PlatformAdapter):
    name = PlatformType.VIBER.value

    def normalize(self, raw: Any) -> CanonicalTurn:
        content = self.validate(CallbackRequest, self.decode(raw))
        turn = self.new_turn(content)

        match content.event:
            case "conversation_started" if content.user is not None:
                user = content.user
                turn.user_command = ""
                turn.message_id = 0
            case "message" if content.sender is not None and content.message is not None:
                user = content.sender
                text = content.message.text or ""
                turn.user_command = text.lower().strip()
                turn.original_user_command = text
                turn.message_id = content.message_token
                turn.payload = content.message.tracking_data
            case _:
                raise ParseError(self.name, f"unsupported event {content.event!r}")

        turn.user_id = user.id
        turn.session = {"api_version": user.api_version or self.settings.viber_api_version}
        turn.nlu = {"this_user": split_user_name(user.name)}
        return turn

    async def render(self, turn: CanonicalTurn) -> Payload:
        if not turn.should_send:
            return DELIVERED

        api_version = turn.session.get("api_version", self.settings.viber_api_version)
        params: dict[str, Any] = {
            "receiver": turn.user_id,
            "sender": {"name": self.settings.viber_sender},
            "type": "text",
            "text": turn.reply_text,
        }
        keyboard = render_viber_keyboard(turn.buttons) if turn.screen_available else None
        if keyboard:
            params["keyboard"] = keyboard
            params["min_api_version"] = api_version
        await self.deliver(OutboundRequest(self.name, "send_message", params))

        rich_media = await self.render_cards(turn) if turn.screen_available else None
        if rich_media:
            await self.deliver(
                OutboundRequest(
                    self.name,
                    "send_message",
                    {
                        "receiver": turn.user_id,
                        "type": "rich_media",
                        "min_api_version": api_version,
                        "rich_media": {
                            "Type": "rich_media",
                            "ButtonsGroupColumns": 6,
                            "ButtonsGroupRows": len(rich_media),
                            "BgColor": "#FFFFFF",
                            "Buttons": rich_media,
                        },
                    },
                )
            )
        if turn.sounds:
            await self.augment_speech(turn, use_standard=False)

        self.check_deadline(turn)
        return DELIVERED
