"""Tests for the synchronous event bus."""

from __future__ import annotations

from storylint.engine.events import (
    CustomEvent,
    Event,
    EventBus,
    FileParsed,
    RunStart,
)


class TestEventBus:
    def test_delivers_by_class_in_registration_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []
        bus.subscribe(RunStart, lambda e: seen.append("first"))
        bus.subscribe(RunStart, lambda e: seen.append("second"))
        bus.subscribe(FileParsed, lambda e: seen.append("other"))

        bus.emit(RunStart(file_count=3))

        assert seen == ["first", "second"]

    def test_subscribe_by_wire_name(self) -> None:
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe("file:parsed", received.append)
        bus.emit(FileParsed(file="a.md"))
        assert received == [FileParsed(file="a.md")]

    def test_wildcard_receives_everything(self) -> None:
        bus = EventBus()
        names: list[str] = []
        bus.subscribe("*", lambda e: names.append(e.name))
        bus.emit(RunStart(file_count=0))
        bus.emit_custom("characters:merged", {"characters": 2})
        assert names == ["run:start", "custom"]

    def test_custom_event_matches_its_own_name(self) -> None:
        bus = EventBus()
        payloads: list[dict] = []
        bus.subscribe("characters:merged", lambda e: payloads.append(e.payload))
        bus.emit(CustomEvent(event="characters:merged", payload={"characters": 2}))
        bus.emit(CustomEvent(event="something:else"))
        assert payloads == [{"characters": 2}]

    def test_failing_handler_does_not_block_siblings(self) -> None:
        bus = EventBus()
        seen: list[int] = []

        def boom(event: Event) -> None:
            raise RuntimeError("handler failed")

        bus.subscribe(RunStart, boom)
        bus.subscribe(RunStart, lambda e: seen.append(e.file_count))

        bus.emit(RunStart(file_count=7))

        assert seen == [7]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        seen: list[Event] = []
        handler = bus.subscribe(RunStart, seen.append)
        bus.unsubscribe(RunStart, handler)
        bus.emit(RunStart(file_count=1))
        assert seen == []
