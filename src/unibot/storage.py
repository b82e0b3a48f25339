"""User data storage collaborator."""

from __future__ import annotations

import copy
from collections.abc import Awaitable
from typing import Protocol

from unibot.types import State


class Storage(Protocol):
    """Persist user data between turns.

    Implementations may be sync or async; the orchestrator awaits either.
    """

    def load(self, user_id: str) -> State | None | Awaitable[State | None]: ...

    def save(self, user_id: str, state: State) -> None | Awaitable[None]: ...


class MemoryStorage:
    """Process-local storage keyed by user id."""

    def __init__(self) -> None:
        self._data: dict[str, State] = {}

    async def load(self, user_id: str) -> State | None:
        state = self._data.get(user_id)
        if state is None:
            return None
        return copy.deepcopy(state)

    async def save(self, user_id: str, state: State) -> None:
        self._data[user_id] = copy.deepcopy(state)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._data
