"""Telegram Bot API webhook adapter."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict
from telegram import Bot

from unibot.components.buttons import render_telegram_keyboard
from unibot.errors import ConfigurationError, ParseError
from unibot.platforms.base import DELIVERED, OutboundRequest, PlatformAdapter
from unibot.turn import CanonicalTurn
from unibot.types import Payload, PlatformType


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")


class Chat(_Envelope):
    id: int | str
    type: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class Message(_Envelope):
    message_id: int
    chat: Chat
    text: str | None = None
    date: int | None = None


class Update(_Envelope):
    update_id: int | None = None
    message: Message | None = None


class TelegramAdapter(PlatformAdapter):
    """Adapter for Telegram webhook updates.

    The response is delivered through ``sendMessage`` (and ``sendMediaGroup``
    for cards); the webhook itself is answered with ``"ok"``.
    """

    name = PlatformType.TELEGRAM.value

    def normalize(self, raw: Any) -> CanonicalTurn:
        content = self.validate(Update, self.decode(raw))
        if content.message is None:
            raise ParseError(self.name, "update has no message")

        message = content.message
        text = message.text or ""
        turn = self.new_turn(content)
        turn.user_id = str(message.chat.id)
        turn.user_command = text.lower().strip()
        turn.original_user_command = text
        turn.message_id = message.message_id
        turn.session = {"chat_id": message.chat.id, "update_id": content.update_id}
        turn.nlu = {
            "this_user": {
                "username": message.chat.username,
                "first_name": message.chat.first_name,
                "last_name": message.chat.last_name,
            }
        }
        return turn

    async def render(self, turn: CanonicalTurn) -> Payload:
        if not turn.should_send:
            return DELIVERED

        chat_id = turn.session.get("chat_id", turn.user_id)
        params: dict[str, Any] = {"chat_id": chat_id, "text": turn.reply_text, "parse_mode": "markdown"}
        if turn.screen_available:
            params["reply_markup"] = render_telegram_keyboard(turn.buttons)
        await self.deliver(OutboundRequest(self.name, "sendMessage", params))

        media = await self.render_cards(turn) if turn.screen_available else None
        if media:
            await self.deliver(OutboundRequest(self.name, "sendMediaGroup", {"chat_id": chat_id, "media": media}))
        if turn.sounds:
            await self.augment_speech(turn, use_standard=False)

        self.check_deadline(turn)
        return DELIVERED


class TelegramBotSender:
    """Send outbound requests through ``python-telegram-bot``."""

    def __init__(self, token: str | None = None, *, bot: Bot | None = None) -> None:
        if bot is None:
            if not token:
                raise ConfigurationError("telegram token is required")
            bot = Bot(token)
        self.bot = bot

    async def send(self, request: OutboundRequest) -> Any:
        logger.debug("telegram.sender.send method={}", request.method)
        return await self.bot.do_api_request(request.method, api_kwargs=request.params)
