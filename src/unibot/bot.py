"""Bot facade: platform selection, plugin wiring and turn execution."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from loguru import logger

from unibot.components.media import CardRenderer, SoundRenderer
from unibot.config import Settings
from unibot.errors import ConfigurationError
from unibot.hook_runtime import HookRuntime
from unibot.intents import DEFAULT_INTENTS, IntentRule
from unibot.orchestrator import Application, TurnOrchestrator
from unibot.platforms import PlatformAdapter, Sender, TelegramBotSender, create_adapter
from unibot.storage import Storage
from unibot.types import PlatformType, TurnResult

BEARER_PREFIX = "Bearer "


def token_from_authorization(header: str | None) -> str | None:
    """Extract the token from an ``Authorization`` header value."""

    if not header:
        return None
    token = header.removeprefix(BEARER_PREFIX).strip()
    return token or None


class Bot:
    """Serve one application callback on any supported platform."""

    def __init__(
        self,
        settings: Settings,
        application: Application,
        *,
        intents: Sequence[IntentRule] = DEFAULT_INTENTS,
        storage: Storage | None = None,
        plugins: Sequence[Any] = (),
        card_renderer: CardRenderer | None = None,
        sound_renderer: SoundRenderer | None = None,
        sender: Sender | None = None,
    ) -> None:
        self.settings = settings
        self._hooks = HookRuntime()
        self._collaborators: dict[str, Any] = {
            "card_renderer": card_renderer,
            "sound_renderer": sound_renderer,
            "sender": sender,
        }
        self._adapters: dict[str, PlatformAdapter] = {}
        self.orchestrator = TurnOrchestrator(settings, intents, application, storage=storage, hooks=self._hooks)
        for plugin in plugins:
            self.register_plugin(plugin)

    @property
    def hooks(self) -> HookRuntime:
        return self._hooks

    def register_plugin(self, plugin: Any, *, name: str | None = None) -> None:
        self._hooks.plugin_manager.register(plugin, name=name)
        self._adapters.clear()
        logger.debug("bot.plugin_registered plugin={}", name or type(plugin).__name__)

    def adapter(self, platform: str | None = None) -> PlatformAdapter:
        """Return the adapter for a platform tag, built once per tag."""

        tag = str(platform or self.settings.platform)
        adapter = self._adapters.get(tag)
        if adapter is None:
            adapter = self._build_adapter(tag)
            self._adapters[tag] = adapter
        return adapter

    def _build_adapter(self, tag: str) -> PlatformAdapter:
        provided = self._hooks.call_first_sync("provide_adapter", platform=tag, settings=self.settings)
        if provided is not None:
            if not isinstance(provided, PlatformAdapter):
                raise ConfigurationError(f"provide_adapter returned {type(provided).__name__} for {tag}")
            return provided

        collaborators = dict(self._collaborators)
        if collaborators["sender"] is None and tag == PlatformType.TELEGRAM and self.settings.telegram_token:
            collaborators["sender"] = TelegramBotSender(self.settings.telegram_token)
        return create_adapter(tag, self.settings, **collaborators)

    async def run(self, raw: Any, *, platform: str | None = None, auth_token: str | None = None) -> TurnResult:
        """Process one inbound webhook payload and return the platform response."""

        return await self.orchestrator.handle_turn(raw, self.adapter(platform), auth_token=auth_token)
