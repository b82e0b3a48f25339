from __future__ import annotations

import pytest

from unibot.storage import MemoryStorage
from unibot.turn import CanonicalTurn


@pytest.mark.parametrize(("message_id", "expected"), [(0, True), ("0", True), (1, False), (None, False)])
def test_is_first_turn(message_id: int | str | None, expected: bool) -> None:
    assert CanonicalTurn(platform="alisa", message_id=message_id).is_first_turn is expected


def test_state_for_response_prefers_user_data_under_local_storage() -> None:
    turn = CanonicalTurn(platform="alisa", state_payload={"inbound": 1}, user_data={"saved": 2})

    assert turn.state_for_response() == {"inbound": 1}
    turn.local_storage = True
    assert turn.state_for_response() == {"saved": 2}


def test_turns_do_not_share_mutable_defaults() -> None:
    first = CanonicalTurn(platform="vk")
    second = CanonicalTurn(platform="vk")
    first.buttons.add("a")
    first.record_error("x")

    assert len(second.buttons) == 0
    assert second.errors == []


@pytest.mark.asyncio
async def test_memory_storage_copies_state() -> None:
    storage = MemoryStorage()
    state = {"items": [1]}

    await storage.save("u", state)
    state["items"].append(2)
    loaded = await storage.load("u")

    assert loaded == {"items": [1]}
    assert "u" in storage
    assert await storage.load("missing") is None
