"""Runtime logging helpers."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from logging import Handler
from typing import Literal

import loguru
from loguru import logger
from rich import get_console
from rich.logging import RichHandler

LogProfile = Literal["default", "console"]

NO_TURN = "-"

_PROFILE_FORMATS: dict[LogProfile, str] = {
    "console": "{extra[turn]} | {message}",
    "default": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {extra[turn]} | {message}",
}
_CONFIGURED_PROFILE: LogProfile | None = None
_CURRENT_TURN: ContextVar[str] = ContextVar("unibot_turn", default=NO_TURN)


def current_turn() -> str:
    """Label of the turn being processed in this context, ``platform:user_id``."""

    return _CURRENT_TURN.get()


@contextmanager
def turn_context(platform: str, user_id: str | None) -> Iterator[str]:
    """Tag log records emitted inside the block with one turn."""

    label = f"{platform}:{user_id or NO_TURN}"
    token = _CURRENT_TURN.set(label)
    try:
        yield label
    finally:
        _CURRENT_TURN.reset(token)


def inject_turn(record: loguru.Record) -> None:
    record["extra"].setdefault("turn", current_turn())


def _build_console_handler() -> Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(*, profile: LogProfile = "default", level: str | None = None) -> None:
    """Configure process-level logging once."""

    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    level = (level or os.getenv("UNIBOT_LOG_LEVEL", "INFO")).upper()
    logger.remove()
    logger.configure(patcher=inject_turn)
    sink = _build_console_handler() if profile == "console" else sys.stderr
    logger.add(
        sink,
        level=level,
        format=_PROFILE_FORMATS[profile],
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED_PROFILE = profile
