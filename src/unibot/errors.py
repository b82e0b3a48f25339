"""Application-level exception types for unibot."""

from __future__ import annotations


class UnibotError(Exception):
    """Base exception for unibot."""


class ConfigurationError(UnibotError):
    """Base exception for configuration and startup validation errors."""


class UnknownPlatformError(ConfigurationError):
    """Raised when no adapter exists for the requested platform tag."""


class ParseError(UnibotError):
    """Raised by an adapter when an inbound payload lacks the platform envelope."""

    def __init__(self, platform: str, reason: str) -> None:
        super().__init__(f"{platform}: {reason}")
        self.platform = platform
        self.reason = reason


class DeadlineExceeded(UnibotError):
    """Soft error: the response was assembled after the platform time budget.

    It is recorded on the turn and never raised past the orchestrator.
    """

    def __init__(self, platform: str, elapsed: float, budget: float) -> None:
        super().__init__(f"{platform}: response took {elapsed:.3f}s, budget is {budget:.3f}s")
        self.platform = platform
        self.elapsed = elapsed
        self.budget = budget
