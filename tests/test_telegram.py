from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from unibot.config import Settings
from unibot.errors import ConfigurationError, ParseError
from unibot.platforms.base import OutboundRequest
from unibot.platforms.telegram import TelegramAdapter, TelegramBotSender


def telegram_update(text: str | None = "Привет Бот") -> dict[str, Any]:
    message: dict[str, Any] = {
        "message_id": 77,
        "date": 1700000000,
        "chat": {"id": 4242, "type": "private", "username": "tester", "first_name": "Test", "last_name": "User"},
    }
    if text is not None:
        message["text"] = text
    return {"update_id": 1, "message": message}


class DummyBot:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def do_api_request(self, endpoint: str, api_kwargs: dict[str, Any] | None = None) -> bool:
        self.calls.append((endpoint, api_kwargs or {}))
        return True


def test_normalize_reads_chat_message(settings: Settings) -> None:
    turn = TelegramAdapter(settings).normalize(telegram_update())

    assert turn.user_id == "4242"
    assert turn.user_command == "привет бот"
    assert turn.original_user_command == "Привет Бот"
    assert turn.message_id == 77
    assert turn.nlu == {"this_user": {"username": "tester", "first_name": "Test", "last_name": "User"}}


def test_normalize_message_without_text(settings: Settings) -> None:
    turn = TelegramAdapter(settings).normalize(telegram_update(text=None))

    assert turn.user_command == ""


def test_normalize_rejects_update_without_message(settings: Settings) -> None:
    with pytest.raises(ParseError):
        TelegramAdapter(settings).normalize({"update_id": 5, "edited_message": {}})


@pytest.mark.asyncio
async def test_render_sends_message_and_returns_ok(settings: Settings, sender: Any) -> None:
    adapter = TelegramAdapter(settings, sender=sender)
    turn = adapter.normalize(telegram_update())
    turn.reply_text = "*Меню*"
    turn.buttons.add("Пицца")

    assert await adapter.render(turn) == "ok"
    assert sender.requests == [
        OutboundRequest(
            "telegram",
            "sendMessage",
            {
                "chat_id": 4242,
                "text": "*Меню*",
                "parse_mode": "markdown",
                "reply_markup": {"keyboard": [["Пицца"]]},
            },
        )
    ]


@pytest.mark.asyncio
async def test_render_sends_media_group_for_cards(
    settings: Settings, sender: Any, card_renderer: Callable[[Any], Any]
) -> None:
    media = [{"type": "photo", "media": "file-id"}]
    adapter = TelegramAdapter(settings, sender=sender, card_renderer=card_renderer(media))
    turn = adapter.normalize(telegram_update())
    turn.reply_text = "Фото"
    turn.cards.append(object())  # type: ignore[arg-type]

    await adapter.render(turn)

    assert [request.method for request in sender.requests] == ["sendMessage", "sendMediaGroup"]
    assert sender.requests[1].params == {"chat_id": 4242, "media": media}


@pytest.mark.asyncio
async def test_render_skips_delivery_when_disabled(settings: Settings, sender: Any) -> None:
    adapter = TelegramAdapter(settings, sender=sender)
    turn = adapter.normalize(telegram_update())
    turn.should_send = False

    assert await adapter.render(turn) == "ok"
    assert sender.requests == []


@pytest.mark.asyncio
async def test_bot_sender_calls_api_method() -> None:
    bot = DummyBot()
    telegram_sender = TelegramBotSender(bot=bot)  # type: ignore[arg-type]

    await telegram_sender.send(OutboundRequest("telegram", "sendMessage", {"chat_id": 1, "text": "hi"}))

    assert bot.calls == [("sendMessage", {"chat_id": 1, "text": "hi"})]


def test_bot_sender_requires_token() -> None:
    with pytest.raises(ConfigurationError):
        TelegramBotSender()


@pytest.mark.asyncio
async def test_render_without_screen_drops_keyboard_and_media(
    settings: Settings, sender: Any, card_renderer: Callable[[Any], Any]
) -> None:
    renderer = card_renderer([{"type": "photo", "media": "file-id"}])
    adapter = TelegramAdapter(settings, sender=sender, card_renderer=renderer)
    turn = adapter.normalize(telegram_update())
    turn.reply_text = "Меню"
    turn.buttons.add("Пицца")
    turn.cards.append(object())  # type: ignore[arg-type]
    turn.screen_available = False

    await adapter.render(turn)

    [request] = sender.requests
    assert request.method == "sendMessage"
    assert "reply_markup" not in request.params
    assert renderer.calls == 0
