"""Turn orchestration: normalize, resolve, run application code, render."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from loguru import logger

from unibot.config import Settings
from unibot.errors import ParseError
from unibot.hook_runtime import HookRuntime
from unibot.intents import HELP_INTENT_NAME, WELCOME_INTENT_NAME, IntentRule, MatchResult, resolve
from unibot.logging_utils import turn_context
from unibot.platforms.base import PlatformAdapter
from unibot.storage import Storage
from unibot.text import choose_text
from unibot.turn import CanonicalTurn
from unibot.types import State, TurnResult

PREVIOUS_INTENT_KEY = "previous_intent"

type Application = Callable[[str | None, CanonicalTurn], None | Awaitable[None]]


async def _resolve_maybe_awaitable(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class TurnOrchestrator:
    """Run one inbound payload through an adapter and the application callback.

    ``handle_turn`` never raises: malformed payloads and application failures
    produce a ``TurnResult`` with ``ok=False`` carrying the adapter's empty
    response, and soft errors (deadline overruns, storage failures) are
    collected on the result.
    """

    def __init__(
        self,
        settings: Settings,
        intents: Sequence[IntentRule],
        application: Application,
        *,
        storage: Storage | None = None,
        hooks: HookRuntime | None = None,
    ) -> None:
        self.settings = settings
        self.intents = tuple(intents)
        self.application = application
        self.storage = storage
        self.hooks = hooks or HookRuntime()

    async def handle_turn(self, raw: Any, adapter: PlatformAdapter, *, auth_token: str | None = None) -> TurnResult:
        try:
            turn = adapter.normalize(raw)
        except ParseError as exc:
            logger.warning("{}.normalize.failed error={}", adapter.name, exc.reason)
            await self.hooks.notify_error(stage="normalize", error=exc, turn=None)
            return TurnResult(platform=adapter.name, payload=adapter.empty_response(), ok=False, errors=[str(exc)])
        except Exception as exc:
            logger.opt(exception=True).error("{}.normalize.crashed", adapter.name)
            await self.hooks.notify_error(stage="normalize", error=exc, turn=None)
            return TurnResult(platform=adapter.name, payload=adapter.empty_response(), ok=False, errors=[str(exc)])

        with turn_context(adapter.name, turn.user_id):
            return await self._process(turn, adapter, auth_token)

    async def _process(self, turn: CanonicalTurn, adapter: PlatformAdapter, auth_token: str | None) -> TurnResult:
        if auth_token is not None and turn.user_token is None:
            turn.user_token = auth_token
        logger.debug(
            "turn.normalized platform={} user_id={} message_id={}", adapter.name, turn.user_id, turn.message_id
        )
        await self.hooks.call_many("on_turn_normalized", turn=turn)

        if turn.health_check:
            return await self._finish(turn, adapter)

        storage_key = auth_token or turn.user_id
        await self._load_user_data(turn, adapter, storage_key)

        match = resolve(turn, self.intents)
        turn.intent_name = match.intent_name
        logger.debug("turn.intent platform={} intent={}", adapter.name, match.intent_name)
        try:
            await self._run_application(turn, match)
        except Exception as exc:
            logger.opt(exception=True).error("turn.application_failed platform={} intent={}", adapter.name, match.intent_name)
            turn.record_error(exc)
            await self.hooks.notify_error(stage="application", error=exc, turn=turn)
            return TurnResult(
                platform=adapter.name,
                payload=adapter.empty_response(),
                ok=False,
                turn=turn,
                errors=list(turn.errors),
            )

        if adapter.speech_from_text and turn.reply_speech is None:
            turn.reply_speech = turn.reply_text
        self._remember_intent(turn)

        result = await self._finish(turn, adapter)
        await self._save_user_data(turn, storage_key)
        return TurnResult(
            platform=result.platform, payload=result.payload, ok=result.ok, turn=turn, errors=list(turn.errors)
        )

    async def _run_application(self, turn: CanonicalTurn, match: MatchResult) -> None:
        if match.intent_name == WELCOME_INTENT_NAME:
            turn.reply_text = choose_text(self.settings.welcome_text)
        elif match.intent_name == HELP_INTENT_NAME:
            turn.reply_text = choose_text(self.settings.help_text)

        if match.rule is not None and match.rule.handler is not None:
            reply = match.rule.handler(turn.user_command, turn)
            if isinstance(reply, str):
                turn.reply_text = reply

        await _resolve_maybe_awaitable(self.application(match.intent_name, turn))

    async def _finish(self, turn: CanonicalTurn, adapter: PlatformAdapter) -> TurnResult:
        try:
            if turn.send_rating:
                payload = await adapter.render_rating(turn)
            else:
                payload = await adapter.render(turn)
        except Exception as exc:
            logger.opt(exception=True).error("{}.render.failed", adapter.name)
            turn.record_error(exc)
            await self.hooks.notify_error(stage="render", error=exc, turn=turn)
            return TurnResult(
                platform=adapter.name, payload=adapter.empty_response(), ok=False, turn=turn, errors=list(turn.errors)
            )

        for error in turn.errors:
            logger.warning("turn.soft_error platform={} error={}", adapter.name, error)
        return TurnResult(platform=adapter.name, payload=payload, turn=turn, errors=list(turn.errors))

    async def _load_user_data(self, turn: CanonicalTurn, adapter: PlatformAdapter, key: str | None) -> None:
        turn.local_storage = self.settings.is_local_storage and adapter.is_local_storage_capable(turn)
        if turn.local_storage:
            state = adapter.load_local_state(turn)
            turn.user_data = dict(state) if isinstance(state, dict) else {}
        elif self.storage is not None and key:
            try:
                state = await _resolve_maybe_awaitable(self.storage.load(key))
            except Exception as exc:
                logger.opt(exception=True).warning("storage.load_failed key={}", key)
                turn.record_error(exc)
                await self.hooks.notify_error(stage="storage.load", error=exc, turn=turn)
                state = None
            turn.user_data = dict(state) if isinstance(state, dict) else {}
        else:
            turn.user_data = {}

        if turn.previous_intent_name is None:
            turn.previous_intent_name = turn.user_data.get(PREVIOUS_INTENT_KEY)

    async def _save_user_data(self, turn: CanonicalTurn, key: str | None) -> None:
        if turn.local_storage or self.storage is None or not key or turn.user_data is None:
            return
        state: State = turn.user_data
        try:
            await _resolve_maybe_awaitable(self.storage.save(key, state))
        except Exception as exc:
            logger.opt(exception=True).warning("storage.save_failed key={}", key)
            turn.record_error(exc)
            await self.hooks.notify_error(stage="storage.save", error=exc, turn=turn)

    @staticmethod
    def _remember_intent(turn: CanonicalTurn) -> None:
        if turn.user_data is None:
            return
        if turn.intent_name:
            turn.user_data[PREVIOUS_INTENT_KEY] = turn.intent_name
        else:
            turn.user_data.pop(PREVIOUS_INTENT_KEY, None)
