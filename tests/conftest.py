from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from unibot.config import Settings
from unibot.platforms.base import OutboundRequest
from unibot.turn import CanonicalTurn


class RecordingSender:
    def __init__(self) -> None:
        self.requests: list[OutboundRequest] = []

    async def send(self, request: OutboundRequest) -> dict[str, bool]:
        self.requests.append(request)
        return {"ok": True}


class StaticCardRenderer:
    def __init__(self, fragment: Any) -> None:
        self.fragment = fragment
        self.calls = 0

    async def render(self, turn: CanonicalTurn) -> Any:
        self.calls += 1
        return self.fragment


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def card_renderer() -> Callable[[Any], StaticCardRenderer]:
    return StaticCardRenderer
