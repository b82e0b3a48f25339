from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from unibot.bot import Bot
from unibot.config import Settings
from unibot.errors import ParseError
from unibot.platforms.vk import VkAdapter
from unibot.turn import CanonicalTurn


def vk_message(text: str = "Привет", payload: str | None = None) -> dict[str, Any]:
    message: dict[str, Any] = {"id": 55, "from_id": 1001, "peer_id": 1001, "text": text}
    if payload is not None:
        message["payload"] = payload
    return {"type": "message_new", "group_id": 9, "object": {"message": message, "client_info": {}}}


def test_normalize_message_new(settings: Settings) -> None:
    turn = VkAdapter(settings).normalize(vk_message(" Меню ", payload='{"command": "menu"}'))

    assert turn.user_id == "1001"
    assert turn.user_command == "меню"
    assert turn.original_user_command == "Меню"
    assert turn.message_id == 55
    assert turn.payload == {"command": "menu"}


def test_normalize_keeps_non_json_payload(settings: Settings) -> None:
    assert VkAdapter(settings).normalize(vk_message(payload="plain")).payload == "plain"


@pytest.mark.parametrize(
    "request_body",
    [
        {"type": "wall_post_new", "object": {}},
        {"type": "message_new"},
        {"type": "message_new", "object": {"message": {"text": "no sender"}}},
    ],
)
def test_normalize_rejects_unsupported_requests(settings: Settings, request_body: dict[str, Any]) -> None:
    with pytest.raises(ParseError):
        VkAdapter(settings).normalize(request_body)


@pytest.mark.asyncio
async def test_confirmation_returns_token_without_application(make_settings: Callable[..., Settings]) -> None:
    calls: list[str | None] = []

    def app(intent_name: str | None, turn: CanonicalTurn) -> None:
        calls.append(intent_name)

    bot = Bot(make_settings(platform="vk", vk_confirmation_token="abc123"), app)

    result = await bot.run({"type": "confirmation", "group_id": 9})

    assert result.payload == "abc123"
    assert calls == []


@pytest.mark.asyncio
async def test_render_sends_message_with_keyboard(settings: Settings, sender: Any) -> None:
    adapter = VkAdapter(settings, sender=sender)
    turn = adapter.normalize(vk_message())
    turn.reply_text = "Выберите"
    turn.buttons.add("Да", payload={"color": "positive"}, _group="answers")
    turn.buttons.add("Нет", _group="answers")

    assert await adapter.render(turn) == "ok"

    [request] = sender.requests
    assert request.method == "messages.send"
    assert request.params["peer_id"] == 1001
    assert request.params["message"] == "Выберите"
    assert isinstance(request.params["random_id"], int)
    keyboard = json.loads(request.params["keyboard"])
    assert keyboard["one_time"] is True
    assert [[button["action"]["label"] for button in row] for row in keyboard["buttons"]] == [["Да", "Нет"]]
    assert keyboard["buttons"][0][0]["color"] == "positive"


@pytest.mark.asyncio
async def test_render_attaches_cards(settings: Settings, sender: Any, card_renderer: Callable[[Any], Any]) -> None:
    adapter = VkAdapter(settings, sender=sender, card_renderer=card_renderer(["photo1_2", "photo1_3"]))
    turn = adapter.normalize(vk_message())
    turn.cards.append(object())  # type: ignore[arg-type]

    await adapter.render(turn)

    assert sender.requests[0].params["attachment"] == "photo1_2,photo1_3"


@pytest.mark.asyncio
async def test_render_drops_template_when_keyboard_present(
    settings: Settings, sender: Any, card_renderer: Callable[[Any], Any]
) -> None:
    adapter = VkAdapter(settings, sender=sender, card_renderer=card_renderer({"type": "carousel", "elements": []}))
    turn = adapter.normalize(vk_message())
    turn.cards.append(object())  # type: ignore[arg-type]

    await adapter.render(turn)
    template_only = dict(sender.requests[-1].params)
    turn.buttons.add("Ок")
    await adapter.render(turn)

    assert json.loads(template_only["template"]) == {"type": "carousel", "elements": []}
    assert "template" not in sender.requests[-1].params


@pytest.mark.asyncio
async def test_render_without_screen_drops_keyboard_and_cards(
    settings: Settings, sender: Any, card_renderer: Callable[[Any], Any]
) -> None:
    renderer = card_renderer(["photo1_2"])
    adapter = VkAdapter(settings, sender=sender, card_renderer=renderer)
    turn = adapter.normalize(vk_message())
    turn.reply_text = "Выберите"
    turn.buttons.add("Да")
    turn.cards.append(object())  # type: ignore[arg-type]
    turn.screen_available = False

    await adapter.render(turn)

    [request] = sender.requests
    assert request.params["message"] == "Выберите"
    assert "keyboard" not in request.params
    assert "attachment" not in request.params
    assert "template" not in request.params
    assert renderer.calls == 0
