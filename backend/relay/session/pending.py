"""FIFO buffer of controller-bound events awaiting a ready controller."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from relay.messaging.types import ControllerEvent


class PendingQueue:
    """Ordered, unbounded queue of events for a room's controller.

    Events leave the queue only through popleft() after a successful send,
    so an event whose delivery failed stays at the head.
    """

    def __init__(self) -> None:
        self._events: deque[ControllerEvent] = deque()

    def __len__(self) -> int:
        return len(self._events)

    def __bool__(self) -> bool:
        return bool(self._events)

    def __iter__(self) -> Iterator[ControllerEvent]:
        return iter(list(self._events))

    def append(self, event: ControllerEvent) -> None:
        self._events.append(event)

    def peek(self) -> ControllerEvent:
        """Return the oldest event without removing it. Raises IndexError when empty."""
        return self._events[0]

    def popleft(self) -> ControllerEvent:
        return self._events.popleft()

    def take_all(self) -> list[ControllerEvent]:
        """Remove and return every queued event in FIFO order."""
        events = list(self._events)
        self._events.clear()
        return events

    def replace(self, events: Iterable[ControllerEvent]) -> None:
        self._events = deque(events)
