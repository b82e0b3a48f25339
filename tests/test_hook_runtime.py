from __future__ import annotations

from typing import Any

import pytest

from unibot.config import Settings
from unibot.hook_runtime import HookRuntime
from unibot.hookspecs import hookimpl
from unibot.turn import CanonicalTurn


class ErrorRecorder:
    def __init__(self) -> None:
        self.stages: list[str] = []

    @hookimpl
    def on_error(self, stage: str, error: Exception, turn: CanonicalTurn | None) -> None:
        self.stages.append(stage)


class BrokenProvider:
    @hookimpl
    def provide_adapter(self, platform: str, settings: Settings) -> Any:
        raise RuntimeError("provider bug")


class StaticProvider:
    @hookimpl
    def provide_adapter(self, platform: str) -> Any:
        return f"adapter-for-{platform}"


class AsyncProvider:
    @hookimpl
    async def provide_adapter(self, platform: str) -> Any:
        return "never"


def _runtime(*plugins: Any) -> HookRuntime:
    runtime = HookRuntime()
    for plugin in plugins:
        runtime.plugin_manager.register(plugin)
    return runtime


def test_call_first_sync_skips_failing_implementation(settings: Settings) -> None:
    recorder = ErrorRecorder()
    runtime = _runtime(StaticProvider(), BrokenProvider(), recorder)

    assert runtime.call_first_sync("provide_adapter", platform="x", settings=settings) == "adapter-for-x"
    assert len(recorder.stages) == 1
    assert recorder.stages[0].startswith("provide_adapter:")


def test_call_first_sync_ignores_async_implementations(settings: Settings) -> None:
    runtime = _runtime(AsyncProvider())

    assert runtime.call_first_sync("provide_adapter", platform="x", settings=settings) is None


@pytest.mark.asyncio
async def test_notify_error_swallows_observer_failures() -> None:
    class BrokenObserver:
        @hookimpl
        def on_error(self, stage: str, error: Exception) -> None:
            raise RuntimeError("observer bug")

    recorder = ErrorRecorder()
    runtime = _runtime(BrokenObserver(), recorder)

    await runtime.notify_error(stage="render", error=ValueError("x"), turn=None)

    assert recorder.stages == ["render"]


@pytest.mark.asyncio
async def test_call_many_awaits_async_implementations() -> None:
    seen: list[str] = []

    class AsyncObserver:
        @hookimpl
        async def on_turn_normalized(self, turn: CanonicalTurn) -> None:
            seen.append(turn.platform)

    runtime = _runtime(AsyncObserver())

    await runtime.call_many("on_turn_normalized", turn=CanonicalTurn(platform="vk"))

    assert seen == ["vk"]


def test_unknown_hook_has_no_implementations() -> None:
    assert HookRuntime().call_first_sync("missing_hook") is None
