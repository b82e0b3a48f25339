"""unibot - one application, every assistant."""

from .bot import Bot, token_from_authorization
from .config import Settings, get_settings
from .hookspecs import hookimpl
from .intents import DEFAULT_INTENTS, IntentRule
from .orchestrator import TurnOrchestrator
from .storage import MemoryStorage
from .turn import CanonicalTurn
from .types import PlatformType, TurnResult

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_INTENTS",
    "Bot",
    "CanonicalTurn",
    "IntentRule",
    "MemoryStorage",
    "PlatformType",
    "Settings",
    "TurnOrchestrator",
    "TurnResult",
    "get_settings",
    "hookimpl",
    "token_from_authorization",
]
