"""Text matching primitives and reply text helpers."""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from rapidfuzz import fuzz

type Needles = str | Sequence[str]

MAX_PATTERN_CACHE = 3000
DEFAULT_RESIZE = 950
ELLIPSIS = "..."

AGREEMENT_PATTERNS: tuple[str, ...] = (
    r"(?:^|\s)да(?:^|\s|$)",
    r"(?:^|\s)конечно(?:^|\s|$)",
    r"(?:^|\s)соглас[^s]+(?:^|\s|$)",
    r"(?:^|\s)подтвер[^s]+(?:^|\s|$)",
)
REFUSAL_PATTERNS: tuple[str, ...] = (
    r"(?:^|\s)нет(?:^|\s|$)",
    r"(?:^|\s)неа(?:^|\s|$)",
    r"(?:^|\s)не(?:^|\s|$)",
)
URL_PATTERN = re.compile(r"((http|s://)[^( |\n)]+)", re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True)
class SimilarityResult:
    """Best candidate found by :func:`text_similarity`."""

    status: bool
    percent: float = 0.0
    index: int | None = None
    text: str | None = None


@lru_cache(maxsize=MAX_PATTERN_CACHE)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile one case-insensitive, multiline pattern (cached)."""

    return re.compile(pattern, re.IGNORECASE | re.MULTILINE)


def join_patterns(needles: Needles) -> str:
    """Join regex fragments into a single parenthesized alternation."""

    if isinstance(needles, str):
        return needles
    return "(" + ")|(".join(needles) + ")"


def contains_any(needles: Needles, haystack: str | None, as_pattern: bool = False) -> bool:
    """Return True when any needle occurs in the haystack.

    Plain needles use case-sensitive substring containment. With ``as_pattern``
    the needles are regex fragments compiled into one alternation.
    """

    if not haystack:
        return False
    if not isinstance(needles, str) and not needles:
        return False

    if as_pattern:
        try:
            pattern = compile_pattern(join_patterns(needles))
        except re.error:
            return False
        return pattern.search(haystack) is not None

    if isinstance(needles, str):
        return needles in haystack
    return any(needle in haystack for needle in needles)


def agreement_detected(text: str | None) -> bool:
    """Detect a whole-word Russian affirmation ("да", "конечно", "согласен", ...)."""

    return contains_any(AGREEMENT_PATTERNS, text, as_pattern=True)


def refusal_detected(text: str | None) -> bool:
    """Detect a whole-word Russian negation ("нет", "неа", "не")."""

    return contains_any(REFUSAL_PATTERNS, text, as_pattern=True)


def similar_text(first: str, second: str) -> float:
    """Similarity percentage based on the longest common subsequence."""

    if first == second:
        return 100.0
    if not first or not second:
        return 0.0
    return float(fuzz.ratio(first, second))


def text_similarity(reference: str, candidates: Needles, threshold: float = 80) -> SimilarityResult:
    """Find the candidate most similar to ``reference``.

    Comparison is case-insensitive. An exact match short-circuits to 100%.
    ``status`` is True when the best percentage reaches ``threshold``.
    """

    texts = [candidates] if isinstance(candidates, str) else list(candidates)
    normalized = (reference or "").lower()

    for index, candidate in enumerate(texts):
        if candidate.lower() == normalized:
            return SimilarityResult(status=True, percent=100.0, index=index, text=candidate)

    best = SimilarityResult(status=False)
    for index, candidate in enumerate(texts):
        percent = similar_text(normalized, candidate.lower())
        if percent > best.percent:
            best = SimilarityResult(status=percent >= threshold, percent=percent, index=index, text=candidate)
    return best


def resize(text: str | None, size: int = DEFAULT_RESIZE, ellipsis: bool = True) -> str:
    """Cut text to ``size`` characters, ending with "..." when it was cut."""

    if not text:
        return ""
    if len(text) <= size:
        return text
    if not ellipsis:
        return text[:size]
    return text[: max(0, size - len(ELLIPSIS))] + ELLIPSIS


def choose_text(variants: Needles) -> str:
    """Return the text itself or a random element of a list of variants."""

    if isinstance(variants, str):
        return variants
    if not variants:
        return ""
    return random.choice(list(variants))


def is_url(text: str | None) -> bool:
    if not text:
        return False
    return URL_PATTERN.search(text) is not None


def get_ending(number: int, titles: Sequence[str], index: int | None = None) -> str | None:
    """Pick the Russian plural form for ``number``: titles are (1, 2-4, 5+) forms."""

    if index is not None and 0 <= index < len(titles):
        return titles[index]

    value = abs(number)
    cases = (2, 0, 1, 1, 1, 2)
    if 4 < value % 100 < 20:
        title_index = 2
    else:
        title_index = cases[min(value % 10, 5)]
    if title_index < len(titles):
        return titles[title_index]
    return None
