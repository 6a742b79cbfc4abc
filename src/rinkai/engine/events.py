from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

Event = dict[str, object]
Level = Literal["info", "error", "action"]


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


@dataclass
class EventLog:
    """In-memory notification sink, optionally forwarding to another sink."""

    records: list[Event] = field(default_factory=list)
    forward: EventSink | None = None

    def emit(self, event: Event) -> None:
        self.records.append(event)
        if self.forward is not None:
            self.forward.emit(event)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.records if e.get("type") == event_type]

    def clear(self) -> None:
        self.records.clear()


def notify(sink: EventSink | None, level: Level, event_type: str, **payload: object) -> Event:
    event: Event = {"type": event_type, "level": level}
    event.update(payload)
    if sink is not None:
        sink.emit(event)
    return event
