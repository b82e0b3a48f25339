"""Intent rules and first-match intent resolution."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from unibot.text import contains_any

if TYPE_CHECKING:
    from unibot.turn import CanonicalTurn

WELCOME_INTENT_NAME = "welcome"
HELP_INTENT_NAME = "help"

type IntentHandler = Callable[[str, CanonicalTurn], str | None]

UNSAFE_PATTERN_SHAPES: tuple[re.Pattern[str], ...] = (
    re.compile(r"\(\w+\+\)\+"),
    re.compile(r"\(\w+\*\)\*"),
    re.compile(r"\(\w+\+\)\*"),
    re.compile(r"\(\w+\*\)\+"),
    re.compile(r"\[[^\]]*\+\]"),
    re.compile(r"(\w\+|\w\*){3,}"),
)


@dataclass(frozen=True)
class IntentRule:
    """One configured intent. Rule order is significant: the first match wins."""

    name: str
    triggers: tuple[str, ...]
    is_pattern: bool = False
    handler: IntentHandler | None = None

    def __post_init__(self) -> None:
        if isinstance(self.triggers, str):
            object.__setattr__(self, "triggers", (self.triggers,))
        else:
            object.__setattr__(self, "triggers", tuple(self.triggers))
        if self.is_pattern:
            unsafe = find_unsafe_patterns(self.triggers)
            if unsafe:
                logger.warning("intent.unsafe_pattern intent={} triggers={}", self.name, ", ".join(unsafe))

    def matches(self, text: str | None) -> bool:
        return contains_any(self.triggers, text, self.is_pattern)


@dataclass(frozen=True)
class MatchResult:
    """Outcome of intent resolution; ``intent_name`` is None when nothing matched."""

    matched: bool
    intent_name: str | None = None
    rule: IntentRule | None = None


NO_MATCH = MatchResult(matched=False)

DEFAULT_INTENTS: tuple[IntentRule, ...] = (
    IntentRule(WELCOME_INTENT_NAME, ("привет", "здравст")),
    IntentRule(HELP_INTENT_NAME, ("помощ", "что ты умеешь")),
)


def find_unsafe_patterns(triggers: Iterable[str]) -> list[str]:
    """Return triggers shaped like catastrophic-backtracking regexes."""

    return [trigger for trigger in triggers if any(shape.search(trigger) for shape in UNSAFE_PATTERN_SHAPES)]


def match_text(text: str | None, rules: Sequence[IntentRule]) -> MatchResult:
    for rule in rules:
        if rule.matches(text):
            return MatchResult(matched=True, intent_name=rule.name, rule=rule)
    return NO_MATCH


def resolve(turn: CanonicalTurn, rules: Sequence[IntentRule]) -> MatchResult:
    """Resolve the intent of one turn.

    Scans ``rules`` in order against ``turn.user_command`` and returns the
    first match. Without a match, the first turn of a session resolves to the
    welcome intent; otherwise the result carries no intent.
    """

    result = match_text(turn.user_command, rules)
    if result.matched:
        return result
    if turn.is_first_turn:
        return MatchResult(matched=True, intent_name=WELCOME_INTENT_NAME)
    return NO_MATCH
