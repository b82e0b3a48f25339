"""Pluggy hook namespace and framework hook specifications."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from unibot.config import Settings
    from unibot.platforms.base import PlatformAdapter
    from unibot.turn import CanonicalTurn

UNIBOT_HOOK_NAMESPACE = "unibot"
hookspec = pluggy.HookspecMarker(UNIBOT_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(UNIBOT_HOOK_NAMESPACE)


class UnibotHookSpecs:
    """Hook contract for unibot extensions."""

    @hookspec(firstresult=True)
    def provide_adapter(self, platform: str, settings: Settings) -> PlatformAdapter | None:
        """Provide an adapter for a platform tag, overriding the built-in one."""

    @hookspec
    def on_turn_normalized(self, turn: CanonicalTurn) -> None:
        """Observe or adjust a turn after normalize, before intent resolution."""

    @hookspec
    def on_error(self, stage: str, error: Exception, turn: CanonicalTurn | None) -> None:
        """Observe soft errors from any stage."""
