"""Button, card and sound collaborators."""

from unibot.components.buttons import Button, Buttons
from unibot.components.media import (
    ALISA_STANDARD_SOUNDS,
    CardItem,
    CardRenderer,
    MarkerSoundRenderer,
    Sound,
    SoundRenderer,
)

__all__ = [
    "ALISA_STANDARD_SOUNDS",
    "Button",
    "Buttons",
    "CardItem",
    "CardRenderer",
    "MarkerSoundRenderer",
    "Sound",
    "SoundRenderer",
]
