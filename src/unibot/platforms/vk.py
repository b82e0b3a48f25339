"""VK Callback API adapter."""

from __future__ import annotations

import json
import time
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict

from unibot.components.buttons import render_vk_keyboard
from unibot.errors import ParseError
from unibot.platforms.base import DELIVERED, OutboundRequest, PlatformAdapter
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType

CONFIRMATION = "confirmation"
MESSAGE_NEW = "message_new"


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")


class VkMessage(_Envelope):
    id: int = 0
    from_id: int
    peer_id: int | None = None
    text: str = ""
    payload: Any = None


class VkObject(_Envelope):
    message: VkMessage
    client_info: dict[str, Any] | None = None


class CallbackRequest(_Envelope):
    type: str
    group_id: int | None = None
    secret: str | None = None
    object: dict[str, Any] | None = None


def decode_payload(payload: Any) -> Any:
    """VK delivers button payloads as JSON strings."""

    if not isinstance(payload, str):
        return payload
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        return payload


class VkAdapter(PlatformAdapter):
    name = PlatformType.VK.value

    def normalize(self, raw: Any) -> CanonicalTurn:
        content = self.validate(CallbackRequest, self.decode(raw))
        turn = self.new_turn(content)
        turn.session = {"group_id": content.group_id}

        if content.type == CONFIRMATION:
            logger.debug("vk.normalize.confirmation group_id={}", content.group_id)
            turn.health_check = True
            return turn
        if content.type != MESSAGE_NEW:
            raise ParseError(self.name, f"unsupported event type {content.type!r}")
        if content.object is None:
            raise ParseError(self.name, "message_new without object")

        message = self.validate(VkObject, content.object).message
        turn.user_id = str(message.from_id)
        turn.user_command = message.text.lower().strip()
        turn.original_user_command = message.text.strip()
        turn.message_id = message.id
        turn.payload = decode_payload(message.payload)
        turn.session["peer_id"] = message.peer_id or message.from_id
        return turn

    async def render(self, turn: CanonicalTurn) -> Payload:
        if turn.health_check:
            return self.settings.vk_confirmation_token or ""
        if not turn.should_send:
            return DELIVERED

        params: dict[str, Any] = {
            "peer_id": turn.session.get("peer_id", turn.user_id),
            "message": turn.reply_text,
            "random_id": time.time_ns() // 1_000_000,
        }
        attachments: list[str] = []
        cards = await self.render_cards(turn) if turn.screen_available else None
        if isinstance(cards, dict):
            params["template"] = json.dumps(cards, ensure_ascii=False)
        elif cards:
            attachments.extend(cards)
        if turn.sounds:
            await self.augment_speech(turn, use_standard=False)
        if attachments:
            params["attachment"] = ",".join(attachments)

        if turn.screen_available:
            if turn.buttons:
                # VK rejects a template together with a keyboard.
                params.pop("template", None)
            params["keyboard"] = json.dumps(render_vk_keyboard(turn.buttons), ensure_ascii=False)

        await self.deliver(OutboundRequest(self.name, "messages.send", params))
        self.check_deadline(turn)
        return DELIVERED
