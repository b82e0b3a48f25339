"""Card and sound collaborator contracts."""

from __future__ import annotations

import random
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from unibot.turn import CanonicalTurn

SOUND_MARKER = re.compile(r"((?:^|\s)#\w+#(?:\s|$))")


@dataclass
class CardItem:
    """One image/card entry; the card renderer decides the wire shape."""

    title: str
    description: str = ""
    image: str | None = None
    button: dict[str, Any] | None = None


@dataclass
class Sound:
    """Sound snippets substituted for ``#key#`` in the speech text."""

    key: str
    sounds: list[str] = field(default_factory=list)


class CardRenderer(Protocol):
    """Turns ``turn.cards`` into a platform fragment (or None to skip)."""

    async def render(self, turn: CanonicalTurn) -> Any: ...


class SoundRenderer(Protocol):
    """Augments speech text with platform sound markup.

    May upload audio and resolve a platform playback token, hence async.
    """

    async def render(self, sounds: Sequence[Sound], speech: str, *, use_standard: bool) -> Any: ...


class MarkerSoundRenderer:
    """Replace ``#key#`` markers with a random snippet of the matching sound."""

    def __init__(self, standard_sounds: Mapping[str, Sequence[str]] | None = None) -> None:
        self._standard = {key: list(values) for key, values in (standard_sounds or {}).items()}

    async def render(self, sounds: Sequence[Sound], speech: str, *, use_standard: bool) -> str:
        if not speech:
            return ""
        table: dict[str, list[str]] = dict(self._standard) if use_standard else {}
        for sound in sounds:
            table[sound.key] = list(sound.sounds)
        for key, variants in table.items():
            if variants and key in speech:
                speech = speech.replace(key, random.choice(variants))
        return strip_sound_markers(speech)


def strip_sound_markers(speech: str) -> str:
    return SOUND_MARKER.sub(" ", speech).strip()


ALISA_STANDARD_SOUNDS: dict[str, list[str]] = {
    "#game_win#": [
        '<speaker audio="alice-sounds-game-win-1.opus">',
        '<speaker audio="alice-sounds-game-win-2.opus">',
        '<speaker audio="alice-sounds-game-win-3.opus">',
    ],
    "#game_loss#": [
        '<speaker audio="alice-sounds-game-loss-1.opus">',
        '<speaker audio="alice-sounds-game-loss-2.opus">',
        '<speaker audio="alice-sounds-game-loss-3.opus">',
    ],
    "#game_boot#": ['<speaker audio="alice-sounds-game-boot-1.opus">'],
    "#game_coin#": [
        '<speaker audio="alice-sounds-game-8-bit-coin-1.opus">',
        '<speaker audio="alice-sounds-game-8-bit-coin-2.opus">',
    ],
    "#game_ping#": ['<speaker audio="alice-sounds-game-ping-1.opus">'],
    "#game_powerup#": [
        '<speaker audio="alice-sounds-game-powerup-1.opus">',
        '<speaker audio="alice-sounds-game-powerup-2.opus">',
    ],
}
