"""Buttons collected on a turn and their platform renderers."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from unibot.text import resize

MAX_TITLE_LENGTH = 64
MAX_URL_LENGTH = 1024

VIBER_REPLY = "reply"
VIBER_OPEN_URL = "open-url"
VK_TEXT = "text"
VK_LINK = "open_link"
VK_GROUP_OPTION = "_group"


@dataclass
class Button:
    """One platform-neutral button.

    ``hide`` makes Alisa/Marusia render the button as a suggest under the reply.
    ``options`` are merged into the rendered Viber/VK button as-is.
    """

    title: str
    url: str | None = None
    payload: Any = None
    hide: bool = True
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class Buttons:
    """Ordered button collection of one turn."""

    items: list[Button] = field(default_factory=list)

    def add(
        self,
        title: str,
        *,
        url: str | None = None,
        payload: Any = None,
        hide: bool = True,
        **options: Any,
    ) -> Buttons:
        self.items.append(Button(title=title, url=url, payload=payload, hide=hide, options=options))
        return self

    def clear(self) -> None:
        self.items.clear()

    def __iter__(self) -> Iterator[Button]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)


def render_alisa_buttons(buttons: Buttons) -> list[dict[str, Any]]:
    """Alisa and Marusia ``response.buttons``."""

    rendered: list[dict[str, Any]] = []
    for button in buttons:
        title = resize(button.title, MAX_TITLE_LENGTH)
        if not title:
            continue
        item: dict[str, Any] = {"title": title, "hide": button.hide}
        if button.payload:
            item["payload"] = button.payload
        if button.url:
            item["url"] = resize(button.url, MAX_URL_LENGTH)
        rendered.append(item)
    return rendered


def render_smartapp_buttons(buttons: Buttons) -> list[dict[str, Any]]:
    """SmartApp ``suggestions.buttons``."""

    rendered: list[dict[str, Any]] = []
    for button in buttons:
        title = resize(button.title, MAX_TITLE_LENGTH)
        if not title:
            continue
        if button.payload:
            action = {"server_action": button.payload, "type": "server_action"}
        else:
            action = {"text": title, "type": "text"}
        rendered.append({"title": title, "action": action})
    return rendered


def render_telegram_keyboard(buttons: Buttons) -> dict[str, Any]:
    """Telegram ``reply_markup``; removes the keyboard when there are no buttons."""

    inline: list[dict[str, Any]] = []
    reply: list[str] = []
    for button in buttons:
        if button.url:
            item: dict[str, Any] = {"text": button.title, "url": button.url}
            if button.payload:
                item["callback_data"] = button.payload
            inline.append(item)
        else:
            reply.append(button.title or "")

    if not inline and not reply:
        return {"remove_keyboard": True}
    markup: dict[str, Any] = {}
    if inline:
        markup["inline_keyboard"] = [inline]
    if reply:
        markup["keyboard"] = [reply]
    return markup


def render_viber_keyboard(buttons: Buttons) -> dict[str, Any] | None:
    rendered: list[dict[str, Any]] = []
    for button in buttons:
        item: dict[str, Any] = {"Text": button.title}
        if button.url:
            item["ActionType"] = VIBER_OPEN_URL
            item["ActionBody"] = button.url
        else:
            item["ActionType"] = VIBER_REPLY
            item["ActionBody"] = button.title
        item.update(button.options)
        rendered.append(item)
    if not rendered:
        return None
    return {"Type": "keyboard", "DefaultHeight": True, "BgColor": "#FFFFFF", "Buttons": rendered}


def render_vk_keyboard(buttons: Buttons) -> dict[str, Any]:
    """VK keyboard; buttons sharing a ``_group`` option land on one row."""

    rows: list[list[dict[str, Any]]] = []
    group_rows: dict[Any, int] = {}
    for button in buttons:
        action: dict[str, Any] = {"type": VK_TEXT, "label": button.title}
        if button.url:
            action["type"] = VK_LINK
            action["link"] = button.url
        if button.payload:
            payload = button.payload
            action["payload"] = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        item: dict[str, Any] = {"action": action}
        if isinstance(button.payload, dict) and "color" in button.payload and not button.url:
            item["color"] = button.payload["color"]

        options = dict(button.options)
        group = options.pop(VK_GROUP_OPTION, None)
        item.update(options)
        if group is None:
            rows.append([item])
        elif group in group_rows:
            rows[group_rows[group]].append(item)
        else:
            group_rows[group] = len(rows)
            rows.append([item])
    return {"one_time": bool(rows), "buttons": rows}
