"""Shared platform adapter contract."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from loguru import logger
from pydantic import BaseModel, ValidationError

from unibot.components.media import CardRenderer, SoundRenderer
from unibot.errors import DeadlineExceeded, ParseError
from unibot.turn import CanonicalTurn
from unibot.types import Payload, State

if TYPE_CHECKING:
    from unibot.config import Settings

NOT_FOUND = "notFound"
DELIVERED = "ok"


@dataclass(frozen=True)
class OutboundRequest:
    """One REST call to a messenger API (Telegram, Viber, VK)."""

    platform: str
    method: str
    params: dict[str, Any] = field(default_factory=dict)


class Sender(Protocol):
    """Delivers outbound requests to a messenger API."""

    async def send(self, request: OutboundRequest) -> Any: ...


class PlatformAdapter(ABC):
    """Abstract base class for platform adapters.

    An adapter turns a raw webhook payload into a :class:`CanonicalTurn`
    (``normalize``) and the processed turn back into the platform response
    (``render``). Adapters keep no per-request state, so one instance serves
    concurrent turns.
    """

    name: ClassVar[str] = "base"
    response_deadline: ClassVar[float | None] = None
    speech_from_text: ClassVar[bool] = False

    def __init__(
        self,
        settings: Settings,
        *,
        card_renderer: CardRenderer | None = None,
        sound_renderer: SoundRenderer | None = None,
        sender: Sender | None = None,
    ) -> None:
        self.settings = settings
        self.card_renderer = card_renderer
        self.sound_renderer = sound_renderer
        self.sender = sender

    @abstractmethod
    def normalize(self, raw: Any) -> CanonicalTurn:
        """Parse the raw payload into a new turn; raise ParseError on a malformed envelope."""

    @abstractmethod
    async def render(self, turn: CanonicalTurn) -> Payload:
        """Build (or deliver) the platform response for a processed turn."""

    async def render_rating(self, turn: CanonicalTurn) -> Payload:
        """Build the response asking the user to rate the application."""

        return await self.render(turn)

    def session_state_namespace(self, turn: CanonicalTurn) -> str | None:
        return turn.state_namespace

    def is_local_storage_capable(self, turn: CanonicalTurn) -> bool:
        """Whether user data can live in the platform's own session state."""

        return False

    def load_local_state(self, turn: CanonicalTurn) -> State | None:
        return None

    def empty_response(self) -> Payload:
        """Fallback body returned when the request could not be processed."""

        return NOT_FOUND

    def new_turn(self, raw: Any) -> CanonicalTurn:
        return CanonicalTurn(platform=self.name, raw_request=raw)

    def decode(self, raw: Any) -> dict[str, Any]:
        """Accept a JSON string, bytes or mapping and return a dict."""

        if not raw:
            raise ParseError(self.name, "empty request")
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(self.name, "invalid utf-8") from exc
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ParseError(self.name, f"invalid json: {exc.msg}") from exc
        if not isinstance(raw, Mapping) or not raw:
            raise ParseError(self.name, "empty request")
        return dict(raw)

    def validate[M: BaseModel](self, model: type[M], content: Mapping[str, Any]) -> M:
        try:
            return model.model_validate(content)
        except ValidationError as exc:
            raise ParseError(self.name, f"unexpected payload: {exc.error_count()} validation error(s)") from exc

    def check_deadline(self, turn: CanonicalTurn) -> DeadlineExceeded | None:
        """Record a soft error when the turn ran past the platform time budget."""

        if self.response_deadline is None:
            return None
        elapsed = turn.elapsed()
        if elapsed < self.response_deadline:
            return None
        error = DeadlineExceeded(self.name, elapsed, self.response_deadline)
        turn.record_error(error)
        logger.warning("{}.render.deadline_exceeded elapsed={:.3f}", self.name, elapsed)
        return error

    async def augment_speech(self, turn: CanonicalTurn, *, use_standard: bool | None = None) -> None:
        """Run the sound collaborator when the turn declares sounds or standard sounds are on."""

        use_standard = turn.use_standard_sounds if use_standard is None else use_standard
        if not turn.sounds and not use_standard:
            return
        if turn.reply_speech is None:
            turn.reply_speech = turn.reply_text
        if self.sound_renderer is None:
            return
        turn.reply_speech = await self.sound_renderer.render(turn.sounds, turn.reply_speech, use_standard=use_standard)

    async def render_cards(self, turn: CanonicalTurn) -> Any:
        if not turn.cards or self.card_renderer is None:
            return None
        return await self.card_renderer.render(turn)

    async def deliver(self, request: OutboundRequest) -> None:
        if self.sender is None:
            logger.warning("{}.deliver.no_sender method={}", self.name, request.method)
            return
        await self.sender.send(request)
