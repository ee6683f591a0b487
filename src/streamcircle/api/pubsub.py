"""In-process pub/sub for room liveness transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomStatusEvent:
    """A room went live or stopped streaming."""

    room_id: str
    slug: str
    is_live: bool


StatusHandler = Callable[[RoomStatusEvent], None]


class StatusBus:
    """Synchronous broadcast hub for room status events.

    The webhook adapter publishes; the relay subscribes once at startup.
    Handlers run in the publisher's call stack, in registration order,
    and must not raise.
    """

    def __init__(self) -> None:
        self._handlers: list[StatusHandler] = []

    def subscribe(self, handler: StatusHandler) -> None:
        """Register a handler for the lifetime of the bus."""
        self._handlers.append(handler)

    def publish(self, event: RoomStatusEvent) -> None:
        """Deliver event to every handler registered right now."""
        logger.debug(
            "Room %s status -> %s (%d handlers)",
            event.slug,
            "live" if event.is_live else "offline",
            len(self._handlers),
        )
        for handler in list(self._handlers):
            handler(event)
