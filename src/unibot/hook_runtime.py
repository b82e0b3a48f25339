"""Hook execution runtime with per-plugin fault isolation."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

import pluggy
from loguru import logger

from unibot.hookspecs import UNIBOT_HOOK_NAMESPACE, UnibotHookSpecs

if TYPE_CHECKING:
    from unibot.turn import CanonicalTurn


def create_plugin_manager() -> pluggy.PluginManager:
    manager = pluggy.PluginManager(UNIBOT_HOOK_NAMESPACE)
    manager.add_hookspecs(UnibotHookSpecs)
    return manager


class HookRuntime:
    """Safe wrapper around pluggy hook execution."""

    def __init__(self, plugin_manager: pluggy.PluginManager | None = None) -> None:
        self._plugin_manager = plugin_manager or create_plugin_manager()

    @property
    def plugin_manager(self) -> pluggy.PluginManager:
        return self._plugin_manager

    def call_first_sync(self, hook_name: str, **kwargs: Any) -> Any:
        """Run implementations in precedence order and return the first non-None value."""

        for impl in self._iter_hookimpls(hook_name):
            call_kwargs = self._kwargs_for_impl(impl, kwargs)
            try:
                value = impl.function(**call_kwargs)
            except Exception as error:
                self._report_sync(hook_name, impl, error, kwargs.get("turn"))
                continue
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                logger.warning("hook.async_not_supported hook={} plugin={}", hook_name, impl.plugin_name or "<unknown>")
                continue
            if value is not None:
                return value
        return None

    async def call_many(self, hook_name: str, **kwargs: Any) -> list[Any]:
        """Run all implementations and collect successful return values."""

        results: list[Any] = []
        for impl in self._iter_hookimpls(hook_name):
            call_kwargs = self._kwargs_for_impl(impl, kwargs)
            try:
                value = impl.function(**call_kwargs)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as error:
                await self.notify_error(
                    stage=f"{hook_name}:{impl.plugin_name or '<unknown>'}",
                    error=error,
                    turn=kwargs.get("turn"),
                )
                continue
            results.append(value)
        return results

    async def notify_error(self, *, stage: str, error: Exception, turn: CanonicalTurn | None) -> None:
        """Call on_error hooks, swallowing observer failures."""

        for impl in self._iter_hookimpls("on_error"):
            call_kwargs = self._kwargs_for_impl(impl, {"stage": stage, "error": error, "turn": turn})
            try:
                value = impl.function(**call_kwargs)
                if inspect.isawaitable(value):
                    await value
            except Exception:
                logger.opt(exception=True).warning(
                    "hook.on_error_failed stage={} plugin={}",
                    stage,
                    impl.plugin_name or "<unknown>",
                )

    def _report_sync(self, hook_name: str, impl: Any, error: Exception, turn: CanonicalTurn | None) -> None:
        stage = f"{hook_name}:{impl.plugin_name or '<unknown>'}"
        logger.opt(exception=error).warning("hook.failed stage={}", stage)
        for observer in self._iter_hookimpls("on_error"):
            call_kwargs = self._kwargs_for_impl(observer, {"stage": stage, "error": error, "turn": turn})
            try:
                value = observer.function(**call_kwargs)
            except Exception:
                logger.opt(exception=True).warning("hook.on_error_failed stage={}", stage)
                continue
            if inspect.iscoroutine(value):
                value.close()
                logger.warning("hook.async_not_supported hook=on_error stage={}", stage)

    def _iter_hookimpls(self, hook_name: str) -> list[Any]:
        hook = getattr(self._plugin_manager.hook, hook_name, None)
        if hook is None or not hasattr(hook, "get_hookimpls"):
            return []
        return list(reversed(hook.get_hookimpls()))

    @staticmethod
    def _kwargs_for_impl(impl: Any, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {name: kwargs[name] for name in impl.argnames if name in kwargs}
