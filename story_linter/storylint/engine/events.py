"""Typed, synchronous publish/subscribe used to report run progress."""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from storylint.engine.models import AggregateResult

logger = logging.getLogger(__name__)

WILDCARD = "*"


class Event(BaseModel):
    """Base event. ``name`` is the stable wire name subscribers key on."""

    model_config = ConfigDict(frozen=True)

    name: ClassVar[str] = "event"


class RunStart(Event):
    name: ClassVar[str] = "run:start"

    file_count: int


class RunComplete(Event):
    name: ClassVar[str] = "run:complete"

    result: AggregateResult


class RunPhase(Event):
    name: ClassVar[str] = "run:phase"

    phase: str
    elapsed: float


class FileParsed(Event):
    name: ClassVar[str] = "file:parsed"

    file: str


class FileExtracted(Event):
    name: ClassVar[str] = "file:extracted"

    file: str
    validator_id: str


class FileValidated(Event):
    name: ClassVar[str] = "file:validated"

    file: str
    validator_id: str
    issue_count: int


class ValidatorPhase(Event):
    name: ClassVar[str] = "validator:phase"

    validator_id: str
    phase: str
    elapsed: float | None = None


class ErrorEvent(Event):
    name: ClassVar[str] = "error"

    context: str
    kind: str
    error: str


class CustomEvent(Event):
    """Validator-defined event; ``event`` carries the validator's own name."""

    name: ClassVar[str] = "custom"

    event: str
    payload: dict[str, Any] = Field(default_factory=dict)


Handler = Callable[[Event], None]


class EventBus:
    """In-process event bus. Handlers run in registration order."""

    def __init__(self) -> None:
        self._subscriptions: list[tuple[str, Handler]] = []

    def subscribe(self, event: str | type[Event], handler: Handler) -> Handler:
        """Register ``handler`` for an event class, wire name, or ``"*"``."""
        self._subscriptions.append((_event_name(event), handler))
        return handler

    def unsubscribe(self, event: str | type[Event], handler: Handler) -> None:
        key = (_event_name(event), handler)
        self._subscriptions = [s for s in self._subscriptions if s != key]

    def emit(self, event: Event) -> None:
        """Deliver ``event`` synchronously. A failing handler never blocks siblings."""
        names = {event.name, WILDCARD}
        if isinstance(event, CustomEvent):
            names.add(event.event)
        for name, handler in list(self._subscriptions):
            if name not in names:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, event.name)

    def emit_custom(self, event: str, payload: dict[str, Any] | None = None) -> None:
        self.emit(CustomEvent(event=event, payload=payload or {}))


def _event_name(event: str | type[Event]) -> str:
    if isinstance(event, str):
        return event
    return event.name
